"""Application services."""

from .agents import AgentService
from .distributions import DEFAULT_TARGET_AGENTS, DistributionService
from .registry import (
    configure_services,
    get_agent_service,
    get_distribution_service,
    get_repository,
    reset_state,
)

__all__ = [
    "AgentService",
    "DEFAULT_TARGET_AGENTS",
    "DistributionService",
    "configure_services",
    "get_agent_service",
    "get_distribution_service",
    "get_repository",
    "reset_state",
]
