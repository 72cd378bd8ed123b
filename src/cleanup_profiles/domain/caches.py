"""Run-owned memo caches shared by concurrent units."""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field


class RunCache[K, V]:
    """Dictionary cache that only locks when the run is concurrent."""

    def __init__(self, *, concurrent: bool = False) -> None:
        self.concurrent = concurrent
        self._values: dict[K, V] = {}
        self._lock: threading.RLock | None = threading.RLock() if concurrent else None

    def __len__(self) -> int:
        with self._guard():
            return len(self._values)

    def __contains__(self, key: object) -> bool:
        with self._guard():
            return key in self._values

    def get(self, key: K) -> V | None:
        with self._guard():
            return self._values.get(key)

    def put(self, key: K, value: V) -> None:
        with self._guard():
            self._values[key] = value

    def snapshot(self) -> dict[K, V]:
        with self._guard():
            return dict(self._values)

    def _guard(self) -> AbstractContextManager[object]:
        return self._lock if self._lock is not None else nullcontext()


@dataclass(slots=True)
class ValidityCache:
    """Email validity results, keyed separately by full address and by domain."""

    concurrent: bool = False
    addresses: RunCache[str, bool] = field(init=False)
    domains: RunCache[str, bool] = field(init=False)

    def __post_init__(self) -> None:
        self.addresses = RunCache(concurrent=self.concurrent)
        self.domains = RunCache(concurrent=self.concurrent)
