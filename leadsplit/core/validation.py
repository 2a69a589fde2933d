from __future__ import annotations

from dataclasses import dataclass, field

from leadsplit.core.errors import ValidationFault

MAX_TARGET_AGENTS = 10


@dataclass(slots=True)
class ParamValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {"is_valid": self.is_valid, "errors": list(self.errors)}


def validate_distribution_params(records: object, target_agent_count: object) -> ParamValidation:
    """Check batch-level preconditions and report every violation found."""

    errors: list[str] = []

    if not isinstance(records, list):
        errors.append("Items must be a list")
    elif not records:
        errors.append("Items list cannot be empty")

    is_int = isinstance(target_agent_count, int) and not isinstance(target_agent_count, bool)
    if not is_int or target_agent_count < 1:  # type: ignore[operator]
        errors.append("Target agent count must be a positive integer")
    elif target_agent_count > MAX_TARGET_AGENTS:  # type: ignore[operator]
        errors.append(f"Target agent count cannot exceed {MAX_TARGET_AGENTS}")

    return ParamValidation(is_valid=not errors, errors=errors)


def ensure_valid_params(records: object, target_agent_count: object) -> None:
    result = validate_distribution_params(records, target_agent_count)
    if not result.is_valid:
        raise ValidationFault(f"Invalid parameters: {', '.join(result.errors)}", result.errors)
