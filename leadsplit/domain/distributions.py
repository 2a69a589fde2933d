"""Domain entities for contact distribution."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from leadsplit.core.errors import IntegrityFault, InvalidTransitionFault


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DistributionStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(slots=True)
class Agent:
    """A worker eligible to receive tasks while active."""

    agent_id: str
    name: str
    email: str
    country_code: str
    mobile_number: str
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)

    @property
    def full_mobile(self) -> str:
        return f"{self.country_code}{self.mobile_number}"

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.agent_id,
            "name": self.name,
            "email": self.email,
            "mobile": {"country_code": self.country_code, "number": self.mobile_number},
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class DistributionSummary:
    total_agents: int
    items_per_agent: int
    remainder_items: int = 0

    def covered_items(self) -> int:
        return self.total_agents * self.items_per_agent + self.remainder_items

    def to_dict(self) -> dict[str, int]:
        return {
            "total_agents": self.total_agents,
            "items_per_agent": self.items_per_agent,
            "remainder_items": self.remainder_items,
        }


@dataclass(slots=True)
class Distribution:
    """One uploaded contact sheet tracked from processing to a terminal state.

    ``processing`` is the only non-terminal state; ``mark_completed`` and
    ``mark_failed`` each leave it exactly once.
    """

    distribution_id: str
    filename: str
    original_name: str
    total_items: int
    uploaded_by: str
    status: DistributionStatus = DistributionStatus.PROCESSING
    processing_error: str | None = None
    summary: DistributionSummary | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status is not DistributionStatus.PROCESSING

    def _leave_processing(self, target: DistributionStatus) -> None:
        if self.is_terminal:
            raise InvalidTransitionFault(
                f"Distribution {self.distribution_id} is already {self.status.value}; "
                f"cannot transition to {target.value}"
            )

    def mark_completed(self, summary: DistributionSummary | None) -> None:
        self._leave_processing(DistributionStatus.COMPLETED)
        if summary is not None and summary.covered_items() != self.total_items:
            raise IntegrityFault("Distribution summary does not match total items")
        self.status = DistributionStatus.COMPLETED
        self.summary = summary
        self.processing_error = None
        self.updated_at = utcnow()

    def mark_failed(self, error: str) -> None:
        self._leave_processing(DistributionStatus.FAILED)
        self.status = DistributionStatus.FAILED
        self.processing_error = error
        self.updated_at = utcnow()

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.distribution_id,
            "filename": self.filename,
            "original_name": self.original_name,
            "total_items": self.total_items,
            "uploaded_by": self.uploaded_by,
            "status": self.status.value,
            "processing_error": self.processing_error,
            "distribution_summary": self.summary.to_dict() if self.summary else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


_TASK_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.ASSIGNED: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED, TaskStatus.ASSIGNED},
    TaskStatus.COMPLETED: {TaskStatus.ASSIGNED},
}


@dataclass(slots=True)
class Task:
    """One contact record assigned to one agent within a distribution."""

    task_id: str
    distribution_id: str
    agent_id: str
    first_name: str
    phone: str
    notes: str = ""
    status: TaskStatus = TaskStatus.ASSIGNED
    assigned_at: datetime = field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def transition(self, target: TaskStatus) -> None:
        if target is self.status:
            return
        if target not in _TASK_TRANSITIONS[self.status]:
            raise InvalidTransitionFault(
                f"Task {self.task_id} cannot move from {self.status.value} to {target.value}"
            )
        now = utcnow()
        if target is TaskStatus.ASSIGNED:
            # reopened
            self.started_at = None
            self.completed_at = None
        elif target is TaskStatus.IN_PROGRESS:
            self.started_at = now
        else:
            self.completed_at = now
        self.status = target

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.task_id,
            "distribution_id": self.distribution_id,
            "agent_id": self.agent_id,
            "first_name": self.first_name,
            "phone": self.phone,
            "notes": self.notes,
            "status": self.status.value,
            "assigned_at": self.assigned_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
