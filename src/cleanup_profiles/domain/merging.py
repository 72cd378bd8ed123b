"""Merge duplicate profiles and sweep orphaned ones."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import CleanupErrors
from .model import DuplicateKeyPolicy, MergeDecision
from .pool import for_each, guarded
from .resolve import resolve_candidate
from .scanning import build_target_index, scan_repair_population, scan_target_population

if TYPE_CHECKING:
    import threading

    from .ports import IdentityStore, MergeApi

log = getLogger(__name__)

DELETE_ORPHANED_PROFILES: Final[str] = (
    "delete from uidentities where not exists "
    "(select 1 from identities where identities.uuid = uidentities.uuid)"
)


@dataclass(slots=True)
class ProfileCleanupResult:
    """Outcome of a profile cleanup run."""

    candidates: int = 0
    targets: int = 0
    merges: int = 0
    orphans_deleted: int = 0
    errors: list[Exception] = field(default_factory=list[Exception])

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise CleanupErrors(self.errors)


class MergeExecutor:
    """Issue merges through the API and count the successful ones."""

    def __init__(self, api: MergeApi) -> None:
        self._api = api
        self.merges = 0

    def execute(self, decision: MergeDecision, lock: threading.Lock | None) -> None:
        source_uuid = decision.source_uuid
        target_uuid = decision.target_uuid
        if source_uuid is None or target_uuid is None:
            return

        if decision.is_complex:
            log.info(
                "complex #%d (%s,%s) -> (%s,%s)",
                decision.index,
                decision.candidate_id,
                source_uuid,
                decision.target_id,
                target_uuid,
            )
        log.info("merge #%d %s -> %s", decision.index, source_uuid, target_uuid)
        self.merge(source_uuid, target_uuid, lock)
        log.info("merged #%d %s -> %s", decision.index, source_uuid, target_uuid)

    def merge(self, source_uuid: str, target_uuid: str, lock: threading.Lock | None) -> None:
        try:
            self._api.merge_unique_identities(source_uuid, target_uuid)
        except Exception:
            log.exception("merge error: %s -> %s", source_uuid, target_uuid)
            raise
        with guarded(lock):
            self.merges += 1


def sweep_orphans(store: IdentityStore) -> int:
    """Delete profiles that no identity references anymore; return how many went."""

    deleted = store.execute(DELETE_ORPHANED_PROFILES)
    if deleted > 0:
        log.info("deleted %d orphaned profiles", deleted)
    return deleted


def cleanup_profiles(
    store: IdentityStore,
    api: MergeApi,
    *,
    threads: int = 1,
    delete_orphaned: bool = False,
    duplicate_key_policy: DuplicateKeyPolicy = DuplicateKeyPolicy.FIRST_SEEN,
    debug: bool = False,
) -> ProfileCleanupResult:
    """Merge every repair candidate into the target sharing its canonical key.

    Scans are fail-fast; merge failures are collected on the result and do
    not stop the other merges.
    """

    candidates = scan_repair_population(store, debug=debug)
    index = build_target_index(scan_target_population(store), policy=duplicate_key_policy)
    log.info("Using %d threads", threads)

    executor = MergeExecutor(api)

    def process(position: int, lock: threading.Lock | None) -> None:
        executor.execute(resolve_candidate(candidates, index, position), lock)

    errors = for_each(len(candidates), threads, process)
    if executor.merges > 0:
        log.info("merged %d profiles", executor.merges)

    result = ProfileCleanupResult(
        candidates=len(candidates),
        targets=len(index),
        merges=executor.merges,
        errors=errors,
    )

    if delete_orphaned:
        try:
            result.orphans_deleted = sweep_orphans(store)
        except Exception as exc:  # noqa: BLE001
            log.exception("orphaned profiles sweep failed")
            result.errors.append(exc)

    if result.errors:
        log.error("profile cleanup finished with %d errors", len(result.errors))
    return result
