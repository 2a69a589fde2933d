"""Fair split of a record list across an ordered set of agents.

Everything here is pure: no repository access, no clock, no logging. The
orchestrator feeds it an item count and the effective agent count and gets
back per-agent counts in agent order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, TypeVar

from leadsplit.core.errors import ValidationFault

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class AllocationPlan:
    """Per-agent counts plus the base/remainder they were derived from."""

    items_per_worker: int
    remainder_items: int
    counts: tuple[int, ...]

    @property
    def total_items(self) -> int:
        return sum(self.counts)

    @property
    def worker_count(self) -> int:
        return len(self.counts)


def _require_positive_int(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationFault(f"{label} must be a positive integer")
    return value


def allocation_plan(item_count: int, worker_count: int) -> AllocationPlan:
    item_count = _require_positive_int(item_count, "Item count")
    worker_count = _require_positive_int(worker_count, "Worker count")

    base, remainder = divmod(item_count, worker_count)
    counts = tuple(base + 1 if index < remainder else base for index in range(worker_count))
    return AllocationPlan(items_per_worker=base, remainder_items=remainder, counts=counts)


def calculate_allocation(item_count: int, worker_count: int) -> list[int]:
    """Return ``worker_count`` counts summing to ``item_count``.

    Counts differ by at most one and never increase along the worker order:
    the first ``item_count % worker_count`` workers carry the extra item.
    """

    return list(allocation_plan(item_count, worker_count).counts)


def slice_records(records: Sequence[T], counts: Sequence[int]) -> list[list[T]]:
    """Hand out ``records`` in their original order according to ``counts``."""

    if sum(counts) != len(records):
        raise ValidationFault(
            f"Allocation covers {sum(counts)} items but {len(records)} records were supplied"
        )

    chunks: list[list[T]] = []
    cursor = 0
    for count in counts:
        chunks.append(list(records[cursor : cursor + count]))
        cursor += count
    return chunks
