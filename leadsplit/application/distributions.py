"""Application service layer for contact distribution."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Any, Sequence

from pydantic import ValidationError

from leadsplit.core.allocation import allocation_plan, slice_records
from leadsplit.core.errors import (
    DistributionFault,
    InvalidTransitionFault,
    NoEligibleWorkersFault,
    NotFoundFault,
    PersistenceFault,
    ValidationFault,
)
from leadsplit.core.schema import ContactRecord
from leadsplit.core.validation import MAX_TARGET_AGENTS, ensure_valid_params, validate_distribution_params
from leadsplit.domain import Agent, Distribution, DistributionSummary, Task, TaskStatus, utcnow
from leadsplit.infrastructure import DistributionRepository

logger = logging.getLogger(__name__)

DEFAULT_TARGET_AGENTS = 5


def _agent_entry(agent: Agent | None, agent_id: str) -> dict[str, Any]:
    return {
        "agent_id": agent_id,
        "agent_name": agent.name if agent else None,
        "agent_email": agent.email if agent else None,
    }


class DistributionService:
    """Coordinates allocation, task persistence and distribution status."""

    def __init__(self, repository: DistributionRepository, *, default_agent_count: int = DEFAULT_TARGET_AGENTS) -> None:
        self._repository = repository
        self._default_agent_count = max(1, min(default_agent_count, MAX_TARGET_AGENTS))

    @property
    def default_agent_count(self) -> int:
        return self._default_agent_count

    def _target(self, target_agent_count: int | None) -> int:
        return self._default_agent_count if target_agent_count is None else target_agent_count

    # ------------------------------------------------------------------
    # validation & agent selection
    # ------------------------------------------------------------------
    def validate_params(self, records: object, target_agent_count: int | None = None) -> dict[str, object]:
        return validate_distribution_params(records, self._target(target_agent_count)).as_dict()

    def select_agents(self, target_agent_count: int) -> tuple[Agent, ...]:
        """Snapshot the active agents for one allocation pass.

        Agents come back in enrollment order and the snapshot is narrowed to
        ``target_agent_count``. Having fewer active agents than requested is
        not an error.
        """

        active = self._repository.list_active_agents()
        if not active:
            raise NoEligibleWorkersFault()
        selected = active[:target_agent_count]
        if len(selected) < target_agent_count:
            logger.info(
                "Narrowing distribution from %d requested agents to %d active",
                target_agent_count,
                len(selected),
            )
        return selected

    @staticmethod
    def _coerce_records(records: Sequence[Any]) -> list[ContactRecord]:
        contacts: list[ContactRecord] = []
        errors: list[str] = []
        for index, record in enumerate(records, start=1):
            if isinstance(record, ContactRecord):
                contacts.append(record)
                continue
            if not isinstance(record, dict):
                errors.append(f"Record {index}: must be a mapping")
                continue
            try:
                contacts.append(ContactRecord.model_validate(record))
            except ValidationError as exc:
                for problem in exc.errors():
                    location = ".".join(str(part) for part in problem["loc"]) or "record"
                    errors.append(f"Record {index}: {location}: {problem['msg']}")
        if errors:
            raise ValidationFault(f"Invalid records: {'; '.join(errors)}", errors)
        return contacts

    # ------------------------------------------------------------------
    # preview
    # ------------------------------------------------------------------
    def preview(self, records: list[Any], target_agent_count: int | None = None) -> dict[str, object]:
        target = self._target(target_agent_count)
        ensure_valid_params(records, target)
        agents = self.select_agents(target)
        plan = allocation_plan(len(records), len(agents))
        return {
            "total_items": len(records),
            "total_agents": plan.worker_count,
            "items_per_agent": plan.items_per_worker,
            "remainder_items": plan.remainder_items,
            "agents": [
                {**_agent_entry(agent, agent.agent_id), "item_count": count}
                for agent, count in zip(agents, plan.counts)
            ],
        }

    # ------------------------------------------------------------------
    # distribution
    # ------------------------------------------------------------------
    def open_distribution(
        self,
        *,
        filename: str,
        total_items: int,
        uploaded_by: str,
        original_name: str | None = None,
    ) -> Distribution:
        distribution = Distribution(
            distribution_id=self._repository.next_distribution_id(),
            filename=filename,
            original_name=original_name or filename,
            total_items=total_items,
            uploaded_by=uploaded_by,
        )
        self._repository.add_distribution(distribution)
        return distribution

    def distribute_items(
        self,
        records: list[Any],
        distribution_id: str,
        target_agent_count: int | None = None,
    ) -> dict[str, object]:
        target = self._target(target_agent_count)
        ensure_valid_params(records, target)
        if self._repository.get_distribution(distribution_id) is None:
            raise NotFoundFault(f"Distribution {distribution_id} not found")

        logger.info("Distributing %d records for %s (target %d agents)", len(records), distribution_id, target)
        agents = self.select_agents(target)
        plan = allocation_plan(len(records), len(agents))
        contacts = self._coerce_records(records)
        chunks = slice_records(contacts, plan.counts)

        assigned_at = utcnow()
        tasks: list[Task] = []
        agent_distribution: list[dict[str, object]] = []
        for agent, count, chunk in zip(agents, plan.counts, chunks):
            agent_distribution.append({**_agent_entry(agent, agent.agent_id), "item_count": count})
            for contact in chunk:
                tasks.append(
                    Task(
                        task_id=self._repository.next_task_id(),
                        distribution_id=distribution_id,
                        agent_id=agent.agent_id,
                        first_name=contact.first_name,
                        phone=contact.phone,
                        notes=contact.notes,
                        status=TaskStatus.ASSIGNED,
                        assigned_at=assigned_at,
                    )
                )

        try:
            created = self._repository.add_tasks(tasks)
        except Exception as exc:
            raise PersistenceFault(f"Failed to persist tasks for distribution {distribution_id}: {exc}") from exc

        logger.info(
            "Distributed %d records of %s across %d agents (%d each, %d remainder)",
            created,
            distribution_id,
            plan.worker_count,
            plan.items_per_worker,
            plan.remainder_items,
        )
        return {
            "tasks_created": created,
            "total_items_distributed": plan.total_items,
            "summary": {
                "total_agents": plan.worker_count,
                "items_per_agent": plan.items_per_worker,
                "remainder_items": plan.remainder_items,
                "agent_distribution": agent_distribution,
            },
        }

    def create_distribution(
        self,
        records: list[Any],
        distribution: Distribution,
        target_agent_count: int | None = None,
    ) -> dict[str, object]:
        """Distribute ``records`` and move ``distribution`` to its terminal state.

        The completed state is only kept once the store accepts it. Any fault
        on the way, including a failed status write, leaves the batch
        ``failed`` with the reason in ``processing_error``.
        """

        if distribution.is_terminal:
            raise InvalidTransitionFault(
                f"Distribution {distribution.distribution_id} is already {distribution.status.value}"
            )

        try:
            result = self.distribute_items(records, distribution.distribution_id, target_agent_count)
            summary = result["summary"]
            self._complete(
                distribution,
                DistributionSummary(
                    total_agents=summary["total_agents"],
                    items_per_agent=summary["items_per_agent"],
                    remainder_items=summary["remainder_items"],
                ),
            )
        except Exception as exc:
            logger.exception("Distribution %s failed", distribution.distribution_id)
            self._fail(distribution, str(exc))
            raise

        return {
            "success": True,
            "distribution_id": distribution.distribution_id,
            "tasks_created": result["tasks_created"],
            "summary": result["summary"],
        }

    def _complete(self, distribution: Distribution, summary: DistributionSummary) -> None:
        previous = replace(distribution)
        distribution.mark_completed(summary)
        try:
            self._repository.save_distribution(distribution)
        except Exception as exc:
            # the store never saw the completed state
            distribution.status = previous.status
            distribution.summary = previous.summary
            distribution.processing_error = previous.processing_error
            distribution.updated_at = previous.updated_at
            if isinstance(exc, DistributionFault):
                raise
            raise PersistenceFault(
                f"Failed to update distribution {distribution.distribution_id}: {exc}"
            ) from exc

    def _fail(self, distribution: Distribution, error: str) -> None:
        if distribution.is_terminal:
            return
        distribution.mark_failed(error)
        try:
            self._repository.save_distribution(distribution)
        except Exception:
            logger.exception("Could not record failure of distribution %s", distribution.distribution_id)

    # ------------------------------------------------------------------
    # read side
    # ------------------------------------------------------------------
    def get_distribution(self, distribution_id: str) -> Distribution:
        distribution = self._repository.get_distribution(distribution_id)
        if distribution is None:
            raise NotFoundFault("Distribution not found")
        return distribution

    def list_distributions(self, uploaded_by: str | None = None) -> list[dict[str, object]]:
        return [item.to_dict() for item in self._repository.list_distributions(uploaded_by)]

    def get_distribution_summary(self, distribution_id: str) -> dict[str, object]:
        distribution = self.get_distribution(distribution_id)

        counts: dict[str, dict[str, int]] = defaultdict(lambda: {status.value: 0 for status in TaskStatus})
        for task in self._repository.list_tasks_for_distribution(distribution_id):
            counts[task.agent_id][task.status.value] += 1

        agent_summary: list[dict[str, object]] = []
        for agent_id, by_status in counts.items():
            total = sum(by_status.values())
            completed = by_status[TaskStatus.COMPLETED.value]
            agent_summary.append(
                {
                    **_agent_entry(self._repository.get_agent(agent_id), agent_id),
                    "task_count": total,
                    "assigned_count": by_status[TaskStatus.ASSIGNED.value],
                    "in_progress_count": by_status[TaskStatus.IN_PROGRESS.value],
                    "completed_count": completed,
                    "pending_count": total - completed,
                }
            )
        agent_summary.sort(key=lambda item: (item["agent_name"] or "", item["agent_id"]))

        return {"distribution": distribution.to_dict(), "agent_summary": agent_summary}

    def get_distribution_details(self, distribution_id: str) -> dict[str, object]:
        distribution = self.get_distribution(distribution_id)

        grouped: dict[str, list[Task]] = defaultdict(list)
        for task in self._repository.list_tasks_for_distribution(distribution_id):
            grouped[task.agent_id].append(task)

        agents: list[tuple[Agent | None, str, list[Task]]] = [
            (self._repository.get_agent(agent_id), agent_id, tasks) for agent_id, tasks in grouped.items()
        ]
        agents.sort(key=lambda entry: (entry[0].created_at if entry[0] else utcnow(), entry[1]))

        return {
            "distribution": distribution.to_dict(),
            "agents": [
                {
                    "agent": agent.to_dict() if agent else {"id": agent_id},
                    "tasks": [task.to_dict() for task in sorted(tasks, key=lambda task: task.task_id)],
                }
                for agent, agent_id, tasks in agents
            ],
        }
