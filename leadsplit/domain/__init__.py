"""Domain layer definitions."""

from .distributions import (
    Agent,
    Distribution,
    DistributionStatus,
    DistributionSummary,
    Task,
    TaskStatus,
    utcnow,
)

__all__ = [
    "Agent",
    "Distribution",
    "DistributionStatus",
    "DistributionSummary",
    "Task",
    "TaskStatus",
    "utcnow",
]
