from __future__ import annotations

import threading
import time

import pytest

from cleanup_profiles.domain.errors import FatalAuthorizationError
from cleanup_profiles.domain.pool import for_each, guarded, resolve_thread_budget


def test_sequential_run_passes_no_lock() -> None:
    locks: list[threading.Lock | None] = []

    def unit(_index: int, lock: threading.Lock | None) -> None:
        locks.append(lock)

    errors = for_each(3, 1, unit)

    assert errors == []
    assert locks == [None, None, None]


def test_concurrent_run_shares_one_lock() -> None:
    locks: list[threading.Lock | None] = []
    guard = threading.Lock()

    def unit(_index: int, lock: threading.Lock | None) -> None:
        with guard:
            locks.append(lock)

    for_each(6, 3, unit)

    assert len(locks) == 6
    assert locks[0] is not None
    assert all(lock is locks[0] for lock in locks)


@pytest.mark.parametrize("budget", [2, 3, 8])
def test_in_flight_units_never_exceed_budget(budget: int) -> None:
    guard = threading.Lock()
    active = 0
    peak = 0
    seen: list[int] = []

    def unit(index: int, _lock: threading.Lock | None) -> None:
        nonlocal active, peak
        with guard:
            active += 1
            peak = max(peak, active)
            seen.append(index)
        time.sleep(0.005)
        with guard:
            active -= 1

    errors = for_each(20, budget, unit)

    assert errors == []
    assert peak <= budget
    assert sorted(seen) == list(range(20))


def test_errors_are_collected_without_stopping_other_units() -> None:
    processed: list[int] = []

    def unit(index: int, lock: threading.Lock | None) -> None:
        if index % 3 == 0:
            raise ValueError(f"unit {index}")
        with guarded(lock):
            processed.append(index)

    sequential = for_each(9, 1, unit)
    processed_sequentially = sorted(processed)
    processed.clear()
    concurrent = for_each(9, 4, unit)

    assert sorted(str(error) for error in sequential) == ["unit 0", "unit 3", "unit 6"]
    assert sorted(str(error) for error in concurrent) == ["unit 0", "unit 3", "unit 6"]
    assert sorted(processed) == processed_sequentially == [1, 2, 4, 5, 7, 8]


@pytest.mark.parametrize("budget", [1, 4])
def test_fatal_errors_propagate_to_the_caller(budget: int) -> None:
    def unit(index: int, _lock: threading.Lock | None) -> None:
        if index == 2:
            raise FatalAuthorizationError("no token")

    with pytest.raises(FatalAuthorizationError) as excinfo:
        for_each(5, budget, unit)

    assert excinfo.value.code == 1


def test_empty_run_does_nothing() -> None:
    def unit(_index: int, _lock: threading.Lock | None) -> None:
        raise AssertionError("unit must not run")

    assert for_each(0, 4, unit) == []


@pytest.mark.parametrize(
    ("requested", "available", "expected"),
    [
        (None, 8, 8),
        (0, 8, 8),
        (-3, 8, 8),
        (4, 8, 4),
        (16, 8, 8),
        (1, 8, 1),
    ],
)
def test_resolve_thread_budget(requested: int | None, available: int, expected: int) -> None:
    assert resolve_thread_budget(requested, available) == expected


def test_guarded_without_lock_is_a_no_op() -> None:
    with guarded(None):
        pass
    lock = threading.Lock()
    with guarded(lock):
        assert lock.locked()
    assert not lock.locked()
