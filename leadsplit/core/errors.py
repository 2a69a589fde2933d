"""Fault taxonomy raised by the distribution core."""
from __future__ import annotations


class DistributionFault(Exception):
    """Base class for every fault the distribution core raises."""

    code = "DISTRIBUTION_FAILED"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFault(DistributionFault):
    """Input shape or bounds were rejected."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


class NoEligibleWorkersFault(DistributionFault):
    code = "NO_ACTIVE_AGENTS"

    def __init__(self, message: str = "No active agents available for distribution") -> None:
        super().__init__(message)


class NotFoundFault(DistributionFault):
    code = "NOT_FOUND"


class ConflictFault(DistributionFault):
    """A uniqueness constraint would be violated."""

    code = "CONFLICT"


class PersistenceFault(DistributionFault):
    """Writing a task or updating a distribution failed."""

    code = "PERSISTENCE_ERROR"


class IntegrityFault(DistributionFault):
    """A completed summary does not add up to the distribution's total items."""

    code = "INTEGRITY_ERROR"


class InvalidTransitionFault(DistributionFault):
    code = "INVALID_TRANSITION"
