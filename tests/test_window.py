from __future__ import annotations

import random

import pytest

from pyavgcalc.window import BoundedUniqueWindow, WindowState, average, build_windows


def test_duplicate_skipped_and_oldest_evicted_in_order() -> None:
    window = BoundedUniqueWindow(10, initial=range(1, 11))

    result = window.ingest_and_snapshot([11, 3, 12])

    assert result == (2, 3, 4, 5, 6, 7, 8, 9, 11, 12)


def test_average_of_evicted_window() -> None:
    assert average([2, 3, 4, 5, 6, 7, 8, 9, 11, 12]) == 6.70


def test_average_of_empty_window_is_zero() -> None:
    assert average([]) == 0


def test_average_rounds_half_up_on_binary_value() -> None:
    # 0.125 is exact in binary, so half-up applies.
    assert average([0.125]) == 0.13
    # 1.005 is stored as 1.00499..., just below the midpoint.
    assert average([1.005]) == 1.0
    assert average([1, 2]) == 1.5
    assert average([1, 2, 2]) == 1.67


def test_average_of_large_finite_values_stays_finite() -> None:
    assert average([1e30]) == 1e30
    # The running sum overflows a double; the mean does not.
    assert average([1.5e308, 1.5e308]) == 1.5e308
    assert average([10**308, 10**308, 1.0]) == pytest.approx(2 * 10**308 / 3)


def test_empty_batch_leaves_window_unchanged() -> None:
    window = BoundedUniqueWindow(5, initial=[4, 8, 15])
    before = window.snapshot()

    after = window.ingest_and_snapshot([])

    assert after == before == (4, 8, 15)


def test_resighted_value_is_not_promoted() -> None:
    window = BoundedUniqueWindow(3, initial=[1, 2, 3])

    assert window.ingest_and_snapshot([1]) == (1, 2, 3)
    # 1 is still the oldest and goes first.
    assert window.ingest_and_snapshot([4]) == (2, 3, 4)


def test_duplicates_within_one_batch_count_once() -> None:
    window = BoundedUniqueWindow(4)

    assert window.ingest_and_snapshot([7, 7, 9, 7, 9]) == (7, 9)


def test_evicted_value_can_return_as_new() -> None:
    window = BoundedUniqueWindow(2, initial=[1, 2])

    window.ingest_and_snapshot([3])
    assert 1 not in window
    assert window.ingest_and_snapshot([1]) == (3, 1)


def test_snapshot_is_isolated_from_later_mutation() -> None:
    window = BoundedUniqueWindow(3)
    first = window.ingest_and_snapshot([1, 2])

    window.ingest_and_snapshot([3, 4, 5])

    assert first == (1, 2)
    assert isinstance(first, tuple)


def test_state_transitions() -> None:
    window = BoundedUniqueWindow(2)
    assert window.state is WindowState.EMPTY

    window.ingest_and_snapshot([1])
    assert window.state is WindowState.PARTIAL

    window.ingest_and_snapshot([2])
    assert window.state is WindowState.FULL

    window.ingest_and_snapshot([3, 4, 5])
    assert window.state is WindowState.FULL
    assert len(window) == 2


def test_randomized_batches_respect_capacity_and_uniqueness() -> None:
    rng = random.Random(1234)
    window = BoundedUniqueWindow(10)
    seen_order: list[int] = []

    for _ in range(500):
        batch = [rng.randint(0, 40) for _ in range(rng.randint(0, 15))]
        result = window.ingest_and_snapshot(batch)

        assert len(result) <= 10
        assert len(set(result)) == len(result)

        # Reference model: first-seen order among currently held values.
        for value in batch:
            if value not in seen_order:
                seen_order.append(value)
                if len(seen_order) > 10:
                    seen_order.pop(0)
        assert list(result) == seen_order


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        BoundedUniqueWindow(0)


def test_build_windows_creates_independent_windows() -> None:
    windows = build_windows(["p", "e"], 3)

    windows["p"].ingest_and_snapshot([2, 3])

    assert windows["p"].snapshot() == (2, 3)
    assert windows["e"].snapshot() == ()
    assert windows["p"].lock is not windows["e"].lock
