"""Process-wide service singletons."""
from __future__ import annotations

from leadsplit.infrastructure import DistributionRepository, InMemoryDistributionRepository

from .agents import AgentService
from .distributions import DEFAULT_TARGET_AGENTS, DistributionService

_repository: DistributionRepository = InMemoryDistributionRepository()
_distribution_service = DistributionService(_repository)
_agent_service = AgentService(_repository)


def configure_services(
    repository: DistributionRepository | None = None,
    *,
    default_agent_count: int = DEFAULT_TARGET_AGENTS,
) -> None:
    """Rebuild the services, optionally on top of another repository."""

    global _repository, _distribution_service, _agent_service
    if repository is not None:
        _repository = repository
    _distribution_service = DistributionService(_repository, default_agent_count=default_agent_count)
    _agent_service = AgentService(_repository)


def get_repository() -> DistributionRepository:
    return _repository


def get_distribution_service() -> DistributionService:
    """Return the singleton distribution service for the process."""

    return _distribution_service


def get_agent_service() -> AgentService:
    return _agent_service


def reset_state() -> None:
    """Reset the in-memory store (used in tests)."""

    _repository.reset()
