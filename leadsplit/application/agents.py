"""Agent directory: registration, activation and task queues."""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from leadsplit.core.errors import NotFoundFault, ValidationFault
from leadsplit.core.schema import AgentCreate, AgentUpdate
from leadsplit.domain import Agent, TaskStatus
from leadsplit.infrastructure import DistributionRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

SORT_KEYS: dict[str, Callable[[Agent], Any]] = {
    "created_at": lambda agent: agent.created_at,
    "name": lambda agent: agent.name.lower(),
    "email": lambda agent: agent.email,
}


def _parse(model: type[BaseModel], payload: Any) -> Any:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        raise ValidationFault(f"Invalid agent: {'; '.join(errors)}", errors) from exc


class AgentService:
    def __init__(self, repository: DistributionRepository) -> None:
        self._repository = repository

    def register_agent(self, payload: dict[str, Any] | AgentCreate) -> Agent:
        payload = _parse(AgentCreate, payload)
        agent = Agent(
            agent_id=self._repository.next_agent_id(),
            name=payload.name,
            email=payload.email.lower(),
            country_code=payload.mobile.country_code,
            mobile_number=payload.mobile.number,
            is_active=payload.is_active,
        )
        self._repository.add_agent(agent)
        logger.info("Registered agent %s", agent.agent_id)
        return agent

    def get_agent(self, agent_id: str) -> Agent:
        agent = self._repository.get_agent(agent_id)
        if agent is None:
            raise NotFoundFault("Agent not found")
        return agent

    def list_agents(self, active: bool | None = None) -> list[Agent]:
        return self._repository.list_agents(active)

    def list_agents_page(
        self,
        *,
        active: bool | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: str = "created_at",
        sort_order: str = "asc",
    ) -> dict[str, object]:
        """One page of the directory plus the paging counters.

        Ties on the sort key keep enrollment order.
        """

        errors: list[str] = []
        if page < 1:
            errors.append("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            errors.append(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if sort_by not in SORT_KEYS:
            errors.append(f"sort_by must be one of: {', '.join(SORT_KEYS)}")
        if sort_order not in ("asc", "desc"):
            errors.append("sort_order must be asc or desc")
        if errors:
            raise ValidationFault("Invalid agent listing parameters", errors)

        agents = self._repository.list_agents(active)
        agents.sort(key=SORT_KEYS[sort_by], reverse=sort_order == "desc")
        total = len(agents)
        total_pages = math.ceil(total / limit)
        start = (page - 1) * limit
        return {
            "items": [agent.to_dict() for agent in agents[start : start + limit]],
            "pagination": {
                "current_page": page,
                "total_pages": total_pages,
                "total_agents": total,
                "has_next_page": page < total_pages,
                "has_prev_page": page > 1,
            },
        }

    def update_agent(self, agent_id: str, payload: dict[str, Any] | AgentUpdate) -> Agent:
        payload = _parse(AgentUpdate, payload)
        agent = self.get_agent(agent_id)
        mobile = payload.mobile
        updated = replace(
            agent,
            name=payload.name if payload.name is not None else agent.name,
            email=payload.email.lower() if payload.email is not None else agent.email,
            country_code=mobile.country_code if mobile and mobile.country_code else agent.country_code,
            mobile_number=mobile.number if mobile and mobile.number else agent.mobile_number,
            is_active=payload.is_active if payload.is_active is not None else agent.is_active,
        )
        # raises ConflictFault when the new email or mobile is taken
        self._repository.save_agent(updated)
        logger.info("Updated agent %s", agent_id)
        return updated

    def set_agent_active(self, agent_id: str, is_active: bool) -> Agent:
        # tasks already assigned to the agent are left untouched
        agent = self.get_agent(agent_id)
        agent.is_active = is_active
        self._repository.save_agent(agent)
        return agent

    def deactivate_agent(self, agent_id: str) -> Agent:
        """Soft delete: the agent stays on record for its existing tasks."""

        agent = self.set_agent_active(agent_id, False)
        logger.info("Deactivated agent %s", agent_id)
        return agent

    def list_agent_tasks(self, agent_id: str, status: str | None = None) -> dict[str, object]:
        agent = self.get_agent(agent_id)
        try:
            wanted = TaskStatus(status) if status else None
        except ValueError as exc:
            raise ValidationFault(f"Unknown task status: {status}") from exc

        tasks = self._repository.list_tasks_for_agent(agent_id, wanted)
        items: list[dict[str, object]] = []
        for task in tasks:
            entry = task.to_dict()
            distribution = self._repository.get_distribution(task.distribution_id)
            entry["distribution"] = (
                {
                    "id": distribution.distribution_id,
                    "filename": distribution.filename,
                    "original_name": distribution.original_name,
                    "created_at": distribution.created_at.isoformat(),
                }
                if distribution
                else None
            )
            items.append(entry)

        completed = sum(1 for task in tasks if task.status is TaskStatus.COMPLETED)
        return {
            "agent": agent.to_dict(),
            "tasks": items,
            "summary": {
                "total_tasks": len(tasks),
                "completed_tasks": completed,
                "pending_tasks": len(tasks) - completed,
            },
        }

    def update_task_status(self, task_id: str, status: str) -> dict[str, object]:
        task = self._repository.get_task(task_id)
        if task is None:
            raise NotFoundFault("Task not found")
        try:
            target = TaskStatus(status)
        except ValueError as exc:
            raise ValidationFault(f"Unknown task status: {status}") from exc
        task.transition(target)
        self._repository.save_task(task)
        return task.to_dict()
