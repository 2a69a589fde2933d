import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from leadsplit.core.allocation import allocation_plan, calculate_allocation, slice_records
from leadsplit.core.errors import ValidationFault
from leadsplit.core.validation import MAX_TARGET_AGENTS, ensure_valid_params, validate_distribution_params


def test_counts_are_fair_for_every_small_split():
    for item_count in range(1, 61):
        for worker_count in range(1, 13):
            counts = calculate_allocation(item_count, worker_count)
            assert len(counts) == worker_count
            assert sum(counts) == item_count
            assert max(counts) - min(counts) <= 1
            assert counts == sorted(counts, reverse=True)


@pytest.mark.parametrize(
    ("items", "workers", "expected"),
    [
        (10, 5, [2, 2, 2, 2, 2]),
        (13, 5, [3, 3, 3, 2, 2]),
        (1, 5, [1, 0, 0, 0, 0]),
        (7, 1, [7]),
    ],
)
def test_known_splits(items, workers, expected):
    assert calculate_allocation(items, workers) == expected


def test_plan_reports_base_and_remainder():
    plan = allocation_plan(13, 5)
    assert plan.items_per_worker == 2
    assert plan.remainder_items == 3
    assert plan.worker_count == 5
    assert plan.total_items == 13

    single = allocation_plan(1, 5)
    assert single.items_per_worker == 0
    assert single.remainder_items == 1


@pytest.mark.parametrize("bad", [0, -3, True, 2.5, "4", None])
def test_rejects_non_positive_or_non_integer_arguments(bad):
    with pytest.raises(ValidationFault):
        calculate_allocation(bad, 3)
    with pytest.raises(ValidationFault):
        calculate_allocation(3, bad)


def test_slice_records_keeps_input_order():
    records = list("abcdefg")
    chunks = slice_records(records, calculate_allocation(len(records), 3))
    assert chunks == [["a", "b", "c"], ["d", "e"], ["f", "g"]]
    assert [item for chunk in chunks for item in chunk] == records


def test_slice_records_rejects_mismatched_counts():
    with pytest.raises(ValidationFault):
        slice_records([1, 2, 3], [1, 1])


def test_validator_reports_every_problem():
    result = validate_distribution_params("not-a-list", MAX_TARGET_AGENTS + 1)
    assert result.is_valid is False
    assert result.errors == ["Items must be a list", "Target agent count cannot exceed 10"]

    result = validate_distribution_params([], 0)
    assert result.errors == ["Items list cannot be empty", "Target agent count must be a positive integer"]

    assert validate_distribution_params(None, True).errors == [
        "Items must be a list",
        "Target agent count must be a positive integer",
    ]


def test_validator_accepts_ceiling():
    result = validate_distribution_params([{"FirstName": "Ann"}], MAX_TARGET_AGENTS)
    assert result.is_valid is True
    assert result.errors == []


def test_ensure_valid_params_raises_validation_fault_with_all_reasons():
    with pytest.raises(ValidationFault) as excinfo:
        ensure_valid_params([], 42)
    assert excinfo.value.errors == ["Items list cannot be empty", "Target agent count cannot exceed 10"]
    assert "Invalid parameters" in str(excinfo.value)
