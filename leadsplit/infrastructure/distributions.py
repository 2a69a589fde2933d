"""Infrastructure layer for distribution persistence."""
from __future__ import annotations

import threading
from typing import Iterable, Protocol

from leadsplit.core.errors import ConflictFault, IntegrityFault, NotFoundFault
from leadsplit.domain import Agent, Distribution, DistributionStatus, Task, TaskStatus


class DistributionRepository(Protocol):
    """Persistence contract for agents, distributions and their tasks."""

    def next_agent_id(self) -> str: ...

    def next_distribution_id(self) -> str: ...

    def next_task_id(self) -> str: ...

    def add_agent(self, agent: Agent) -> None: ...

    def get_agent(self, agent_id: str) -> Agent | None: ...

    def save_agent(self, agent: Agent) -> None: ...

    def list_agents(self, active: bool | None = None) -> list[Agent]: ...

    def list_active_agents(self) -> tuple[Agent, ...]: ...

    def add_distribution(self, distribution: Distribution) -> None: ...

    def get_distribution(self, distribution_id: str) -> Distribution | None: ...

    def save_distribution(self, distribution: Distribution) -> None: ...

    def list_distributions(self, uploaded_by: str | None = None) -> list[Distribution]: ...

    def add_tasks(self, tasks: Iterable[Task]) -> int: ...

    def get_task(self, task_id: str) -> Task | None: ...

    def save_task(self, task: Task) -> None: ...

    def list_tasks_for_distribution(self, distribution_id: str) -> list[Task]: ...

    def list_tasks_for_agent(self, agent_id: str, status: TaskStatus | None = None) -> list[Task]: ...

    def reset(self) -> None: ...


def _enrollment_key(agent: Agent) -> tuple:
    return (agent.created_at, agent.agent_id)


class InMemoryDistributionRepository:
    """Simple in-memory repository for fast iteration and tests."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._agents: dict[str, Agent] = {}
        self._distributions: dict[str, Distribution] = {}
        self._tasks: dict[str, Task] = {}
        self._agent_counter = 0
        self._distribution_counter = 0
        self._task_counter = 0

    # ------------------------------------------------------------------
    # identifiers
    # ------------------------------------------------------------------
    def next_agent_id(self) -> str:
        with self._lock:
            self._agent_counter += 1
            return f"agent-{self._agent_counter:05d}"

    def next_distribution_id(self) -> str:
        with self._lock:
            self._distribution_counter += 1
            return f"dist-{self._distribution_counter:05d}"

    def next_task_id(self) -> str:
        with self._lock:
            self._task_counter += 1
            return f"task-{self._task_counter:07d}"

    # ------------------------------------------------------------------
    # agents
    # ------------------------------------------------------------------
    def _check_agent_unique(self, agent: Agent) -> None:
        for existing in self._agents.values():
            if existing.agent_id == agent.agent_id:
                continue
            if existing.email == agent.email:
                raise ConflictFault(f"An agent with email {agent.email} already exists")
            if existing.full_mobile == agent.full_mobile:
                raise ConflictFault(f"An agent with mobile {agent.full_mobile} already exists")

    def add_agent(self, agent: Agent) -> None:
        with self._lock:
            self._check_agent_unique(agent)
            self._agents[agent.agent_id] = agent

    def get_agent(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id)

    def save_agent(self, agent: Agent) -> None:
        with self._lock:
            if agent.agent_id not in self._agents:
                raise NotFoundFault(f"Agent {agent.agent_id} not found")
            self._check_agent_unique(agent)
            self._agents[agent.agent_id] = agent

    def list_agents(self, active: bool | None = None) -> list[Agent]:
        with self._lock:
            agents = [agent for agent in self._agents.values() if active is None or agent.is_active is active]
        agents.sort(key=_enrollment_key)
        return agents

    def list_active_agents(self) -> tuple[Agent, ...]:
        return tuple(self.list_agents(active=True))

    # ------------------------------------------------------------------
    # distributions
    # ------------------------------------------------------------------
    def add_distribution(self, distribution: Distribution) -> None:
        with self._lock:
            if distribution.distribution_id in self._distributions:
                raise ConflictFault(f"Distribution {distribution.distribution_id} already exists")
            self._distributions[distribution.distribution_id] = distribution

    def get_distribution(self, distribution_id: str) -> Distribution | None:
        return self._distributions.get(distribution_id)

    def save_distribution(self, distribution: Distribution) -> None:
        summary = distribution.summary
        if (
            distribution.status is DistributionStatus.COMPLETED
            and summary is not None
            and summary.covered_items() != distribution.total_items
        ):
            raise IntegrityFault("Distribution summary does not match total items")
        with self._lock:
            if distribution.distribution_id not in self._distributions:
                raise NotFoundFault(f"Distribution {distribution.distribution_id} not found")
            self._distributions[distribution.distribution_id] = distribution

    def list_distributions(self, uploaded_by: str | None = None) -> list[Distribution]:
        with self._lock:
            items = [
                item
                for item in self._distributions.values()
                if uploaded_by is None or item.uploaded_by == uploaded_by
            ]
        items.sort(key=lambda item: (item.created_at, item.distribution_id), reverse=True)
        return items

    # ------------------------------------------------------------------
    # tasks
    # ------------------------------------------------------------------
    def add_tasks(self, tasks: Iterable[Task]) -> int:
        batch = list(tasks)
        with self._lock:
            for task in batch:
                if task.task_id in self._tasks:
                    raise ConflictFault(f"Task {task.task_id} already exists")
                if task.distribution_id not in self._distributions:
                    raise NotFoundFault(f"Distribution {task.distribution_id} not found")
                if task.agent_id not in self._agents:
                    raise NotFoundFault(f"Agent {task.agent_id} not found")
            # nothing is written unless every task passed the checks above
            for task in batch:
                self._tasks[task.task_id] = task
        return len(batch)

    def get_task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def save_task(self, task: Task) -> None:
        with self._lock:
            if task.task_id not in self._tasks:
                raise NotFoundFault(f"Task {task.task_id} not found")
            self._tasks[task.task_id] = task

    def list_tasks_for_distribution(self, distribution_id: str) -> list[Task]:
        with self._lock:
            return [task for task in self._tasks.values() if task.distribution_id == distribution_id]

    def list_tasks_for_agent(self, agent_id: str, status: TaskStatus | None = None) -> list[Task]:
        with self._lock:
            tasks = [
                task
                for task in self._tasks.values()
                if task.agent_id == agent_id and (status is None or task.status is status)
            ]
        tasks.sort(key=lambda task: (task.assigned_at, task.task_id), reverse=True)
        return tasks

    def reset(self) -> None:
        with self._lock:
            self._agents.clear()
            self._distributions.clear()
            self._tasks.clear()
            self._agent_counter = 0
            self._distribution_counter = 0
            self._task_counter = 0
