"""Domain-level error types."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class DuplicateEntryError(RuntimeError):
    """Raised by stores when a write would violate a uniqueness constraint."""


class FatalAuthorizationError(SystemExit):
    """No API token could be obtained; the whole process has to stop.

    Subclasses ``SystemExit`` so that worker threads and ``except Exception``
    handlers do not absorb it as a per-item failure.
    """

    def __init__(self, message: str) -> None:
        super().__init__(1)
        self.message = message

    def __str__(self) -> str:
        return self.message


class CleanupErrors(RuntimeError):
    """Aggregate of the per-item failures collected during a run."""

    def __init__(self, errors: Sequence[Exception]) -> None:
        self.errors = tuple(errors)
        details = "; ".join(f"{type(error).__name__}: {error}" for error in self.errors)
        super().__init__(f"{len(self.errors)} errors: {details}")
