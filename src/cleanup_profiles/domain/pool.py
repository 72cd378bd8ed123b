"""Bounded fan-out over item indexes.

Each unit runs on its own short-lived thread and reports exactly one
error-or-``None`` through a single result queue. The dispatcher counts units
in flight and drains one result whenever the count reaches the budget, then
drains the rest once every unit has been launched. Errors are only appended
by the dispatcher, after they come off the queue.
"""

from __future__ import annotations

import os
import queue
import threading
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from logging import getLogger

log = getLogger(__name__)

type Unit = Callable[[int, threading.Lock | None], None]
"""Process item ``i``; the lock guards shared tallies and is ``None`` when sequential."""


def resolve_thread_budget(requested: int | None, available: int | None = None) -> int:
    """Cap the requested budget to the CPU count; non-positive means "use every CPU"."""

    cpus = available if available is not None else (os.cpu_count() or 1)
    if requested is None or requested <= 0:
        return cpus
    return min(requested, cpus)


def guarded(lock: threading.Lock | None) -> AbstractContextManager[object]:
    """Context manager for a tally update: the lock, or a no-op when running sequentially."""

    return lock if lock is not None else nullcontext()


def for_each(count: int, budget: int, unit: Unit) -> list[Exception]:
    """Run ``unit(i, lock)`` for ``i`` in ``range(count)`` with at most ``budget`` in flight.

    Exceptions raised by a unit are collected and returned; they never stop
    the other units. ``BaseException`` subclasses that are not ``Exception``
    (process-terminating conditions) are re-raised on the calling thread.
    """

    errors: list[Exception] = []
    if budget <= 1:
        for index in range(count):
            try:
                unit(index, None)
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)
        return errors

    lock = threading.Lock()
    results: queue.Queue[BaseException | None] = queue.Queue()
    in_flight = 0
    for index in range(count):
        worker = threading.Thread(
            target=_report,
            args=(unit, index, lock, results),
            name=f"cleanup-unit-{index}",
            daemon=True,
        )
        worker.start()
        in_flight += 1
        if in_flight == budget:
            _collect(results.get(), errors)
            in_flight -= 1

    while in_flight > 0:
        _collect(results.get(), errors)
        in_flight -= 1

    return errors


def _report(
    unit: Unit,
    index: int,
    lock: threading.Lock,
    results: queue.Queue[BaseException | None],
) -> None:
    outcome: BaseException | None = None
    try:
        unit(index, lock)
    except BaseException as exc:  # noqa: BLE001
        outcome = exc
    results.put(outcome)


def _collect(outcome: BaseException | None, errors: list[Exception]) -> None:
    if outcome is None:
        return
    if not isinstance(outcome, Exception):
        raise outcome
    errors.append(outcome)
