"""Tests for slot allocation."""

from __future__ import annotations

import random

import pytest

from randomidle.allocator import allocate


def test_fixed_plus_one_random_slot() -> None:
    fixed = [10, 20]
    pool = [10, 20, 30, 40, 50]
    for seed in range(25):
        result = allocate(fixed, pool, 3, random.Random(seed))
        assert result[:2] == [10, 20]
        assert len(result) == 3
        assert result[2] in {30, 40, 50}


def test_length_is_capped_by_available_items() -> None:
    result = allocate([1], [1, 2, 3], 32)
    assert sorted(result) == [1, 2, 3]
    assert result[0] == 1


def test_too_many_fixed_items_are_truncated_in_order() -> None:
    fixed = list(range(100, 140))
    result = allocate(fixed, [1, 2, 3], 32)
    assert result == fixed[:32]


def test_fixed_exactly_at_cap_draws_nothing() -> None:
    fixed = [5, 6, 7]
    assert allocate(fixed, [1, 2, 3, 4], 3) == [5, 6, 7]


def test_empty_inputs_give_empty_result() -> None:
    assert allocate([], [], 32) == []


def test_no_duplicates() -> None:
    fixed = [3, 3, 4]
    pool = [1, 2, 3, 4, 4, 5, 5, 6]
    result = allocate(fixed, pool, 5, random.Random(1))
    assert len(result) == len(set(result)) == 5
    assert result[:2] == [3, 4]
    assert set(result[2:]) <= {1, 2, 5, 6}


def test_inputs_are_not_modified() -> None:
    fixed = [1, 2]
    pool = [1, 2, 3, 4, 5, 6]
    allocate(fixed, pool, 4, random.Random(3))
    assert fixed == [1, 2]
    assert pool == [1, 2, 3, 4, 5, 6]


def test_fresh_list_every_call() -> None:
    first = allocate([1], [1, 2], 32)
    second = allocate([1], [1, 2], 32)
    assert first == [1, 2]
    assert first is not second


def test_same_seed_is_reproducible() -> None:
    pool = list(range(1000))
    assert allocate([], pool, 10, random.Random(42)) == allocate([], pool, 10, random.Random(42))


def test_successive_calls_reshuffle() -> None:
    rng = random.Random(42)
    pool = list(range(1000))
    first = allocate([], pool, 10, rng)
    second = allocate([], pool, 10, rng)
    assert first != second


@pytest.mark.parametrize("max_concurrent", [0, -1])
def test_non_positive_cap_is_rejected(max_concurrent: int) -> None:
    with pytest.raises(ValueError):
        allocate([1], [1, 2], max_concurrent)
