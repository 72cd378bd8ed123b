"""Load the repair and target identity populations.

Both scans are sequential and single-pass. The store hands back drained rows,
so no cursor is open by the time the worker pool starts issuing merges on the
same connection pool. Any store failure propagates and aborts the run.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from .keys import canonical_key
from .model import DuplicateKeyPolicy, IdentityColumns, IdentityRecord, TargetIndex

if TYPE_CHECKING:
    from .ports import IdentityStore, Row

log = getLogger(__name__)

MISSING_NAME_MARKER: Final[str] = "-MISSING-NAME"

_HAS_USERNAME_OR_EMAIL = (
    "((username is not null and trim(username) != '') "
    "or (email is not null and trim(email) != ''))"
)

REPAIR_POPULATION_QUERY: Final[str] = (
    "select id, uuid, source, name, username, email from identities "
    "where (name like :marker or name is null or trim(name) = '') "
    f"and {_HAS_USERNAME_OR_EMAIL}"
)

TARGET_POPULATION_QUERY: Final[str] = (
    "select id, uuid, source, name, username, email from identities "
    "where name is not null and trim(name) != '' and name not like :marker "
    f"and {_HAS_USERNAME_OR_EMAIL}"
)


def _marker_pattern() -> dict[str, object]:
    return {"marker": f"%{MISSING_NAME_MARKER}"}


def scan_repair_population(store: IdentityStore, *, debug: bool = False) -> IdentityColumns:
    """Identities with a missing/blank name that still carry a username or email."""

    columns = _scan(store, REPAIR_POPULATION_QUERY)
    if debug:
        seen: set[str] = set()
        for row in range(len(columns)):
            key = canonical_key(columns.sources[row], columns.usernames[row], columns.emails[row])
            if key in seen:
                log.debug("missing names: non-unique key: %s", key)
            seen.add(key)
    log.info("%d identities with missing name and non-empty username or email", len(columns))
    return columns


def scan_target_population(store: IdentityStore) -> IdentityColumns:
    """Identities with a real name and a username or email: trusted merge targets."""

    columns = _scan(store, TARGET_POPULATION_QUERY)
    log.info("%d identities with a name and non-empty username or email", len(columns))
    return columns


def build_target_index(
    targets: IdentityColumns,
    *,
    policy: DuplicateKeyPolicy = DuplicateKeyPolicy.FIRST_SEEN,
) -> TargetIndex:
    """Map canonical keys to the first-seen target id/uuid.

    A target without a profile only holds its key until a later target with
    the same key brings one.

    Colliding keys are always logged. With ``DuplicateKeyPolicy.SKIP`` a
    colliding key is removed from the index so nothing merges into an
    ambiguous target.
    """

    index = TargetIndex()
    for row in range(len(targets)):
        key = canonical_key(targets.sources[row], targets.usernames[row], targets.emails[row])
        target_uuid = targets.uuids[row]
        if key in index:
            log.warning("targets: non-unique key: %s", key)
            index.duplicate_keys.add(key)
            if target_uuid is None or key in index.uuids_by_key:
                continue
        index.ids_by_key[key] = targets.ids[row]
        if target_uuid is not None:
            index.uuids_by_key[key] = target_uuid

    if policy is DuplicateKeyPolicy.SKIP:
        for key in index.duplicate_keys:
            index.ids_by_key.pop(key, None)
            index.uuids_by_key.pop(key, None)

    log.info(
        "target index: %d keys, %d non-unique (policy=%s)",
        len(index),
        len(index.duplicate_keys),
        policy.value,
    )
    return index


def _scan(store: IdentityStore, statement: str) -> IdentityColumns:
    columns = IdentityColumns()
    for row in store.query(statement, _marker_pattern()):
        columns.append(_record_from_row(row))
    return columns


def _record_from_row(row: Row) -> IdentityRecord:
    identity_id, uuid, source, name, username, email = row
    return IdentityRecord(
        id=identity_id,
        uuid=uuid,
        source=source,
        name=name,
        username=username,
        email=email,
    )
