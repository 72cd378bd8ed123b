"""Clear invalid emails on identities and profiles.

Identity ids are derived from the email, so clearing it means re-deriving the
id as if the email had always been empty. When a row with that id already
exists the identity was already recorded without the email, and the current
row is deleted instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import CleanupErrors, DuplicateEntryError
from .identity_ids import IdentityIdCache
from .model import IdentityColumns, IdentityRecord
from .pool import for_each, guarded

if TYPE_CHECKING:
    import threading

    from .emails import EmailValidator
    from .ports import IdentityStore

log = getLogger(__name__)

IDENTITY_EMAILS_QUERY: Final[str] = (
    "select id, source, coalesce(name, ''), coalesce(username, ''), email from identities "
    "where email is not null and trim(email) != ''"
)
PROFILE_EMAILS_QUERY: Final[str] = (
    "select uuid, email from profiles where email is not null and trim(email) != ''"
)
CLEAR_IDENTITY_EMAIL: Final[str] = "update identities set email = '', id = :new_id where id = :id"
DELETE_IDENTITY: Final[str] = "delete from identities where id = :id"
CLEAR_PROFILE_EMAIL: Final[str] = "update profiles set email = '' where uuid = :uuid"


class IdentityIdError(ValueError):
    """Raised when an identity has nothing left to derive an id from."""


@dataclass(slots=True)
class EmailCleanupResult:
    """Outcome of an email cleanup run."""

    identities: int = 0
    updated: int = 0
    deleted: int = 0
    mismatches: int = 0
    profiles: int = 0
    profiles_updated: int = 0
    errors: list[Exception] = field(default_factory=list[Exception])

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise CleanupErrors(self.errors)


@dataclass(slots=True)
class ProfileEmails:
    uuids: list[str] = field(default_factory=list[str])
    emails: list[str] = field(default_factory=list[str])

    def __len__(self) -> int:
        return len(self.uuids)


class IdentityEmailCleaner:
    """Per-identity unit: validate, then clear the email and re-key the row."""

    def __init__(
        self,
        store: IdentityStore,
        validator: EmailValidator,
        identities: IdentityColumns,
        result: EmailCleanupResult,
        *,
        identity_ids: IdentityIdCache,
        debug: bool = False,
    ) -> None:
        self._store = store
        self._validator = validator
        self._identities = identities
        self._result = result
        self._identity_ids = identity_ids
        self._debug = debug

    def __call__(self, position: int, lock: threading.Lock | None) -> None:
        record = self._identities.record(position)
        email = record.email or ""
        if self._validator.is_valid(email):
            return
        if self._debug:
            log.debug("processing identity invalid email #%d: '%s'", position, email)

        source = record.source
        name = record.name or ""
        username = record.username or ""
        previous_id = self._identity_ids.derive(source, email, name, username)
        if previous_id != record.id:
            log.debug(
                "notice: old identity ID calculation mismatch for "
                "(src=%s,email=%s,name=%s,uname=%s)",
                source,
                email,
                name,
                username,
            )
        new_id = self._identity_ids.derive(source, "", name, username)
        if not new_id:
            raise IdentityIdError(
                f"cannot derive an id without email for identity {record.id} (src={source})"
            )

        deleted = False
        try:
            affected = self._store.execute(
                CLEAR_IDENTITY_EMAIL, {"new_id": new_id, "id": record.id}
            )
        except DuplicateEntryError:
            log.info(
                "correct identity with an empty email already exists "
                "(src=%s,name=%s,uname=%s), deleting current %s",
                source,
                name,
                username,
                record.id,
            )
            affected = self._store.execute(DELETE_IDENTITY, {"id": record.id})
            deleted = True

        if affected == 0:
            log.warning(
                "no rows affected for (%s->%s,src=%s,email=%s,name=%s,uname=%s)",
                record.id,
                new_id,
                source,
                email,
                name,
                username,
            )
            return
        log.debug("affected = %d for (%s->%s,src=%s)", affected, record.id, new_id, source)

        with guarded(lock):
            if deleted:
                self._result.deleted += 1
            else:
                self._result.updated += 1
            if previous_id != record.id:
                self._result.mismatches += 1


class ProfileEmailCleaner:
    """Per-profile unit: validate, then clear the email."""

    def __init__(
        self,
        store: IdentityStore,
        validator: EmailValidator,
        profiles: ProfileEmails,
        result: EmailCleanupResult,
        *,
        debug: bool = False,
    ) -> None:
        self._store = store
        self._validator = validator
        self._profiles = profiles
        self._result = result
        self._debug = debug

    def __call__(self, position: int, lock: threading.Lock | None) -> None:
        email = self._profiles.emails[position]
        if self._validator.is_valid(email):
            return
        if self._debug:
            log.debug("processing profile invalid email #%d: '%s'", position, email)

        uuid = self._profiles.uuids[position]
        affected = self._store.execute(CLEAR_PROFILE_EMAIL, {"uuid": uuid})
        if affected == 0:
            log.warning("no rows affected for (uuid=%s,email=%s)", uuid, email)
            return
        with guarded(lock):
            self._result.profiles_updated += 1


def cleanup_emails(
    store: IdentityStore,
    validator: EmailValidator,
    *,
    threads: int = 1,
    identity_ids: IdentityIdCache | None = None,
    debug: bool = False,
) -> EmailCleanupResult:
    """Clear invalid emails on identities first, then on profiles."""

    result = EmailCleanupResult()
    ids = identity_ids if identity_ids is not None else IdentityIdCache(concurrent=threads > 1)
    log.info("Using %d threads", threads)

    identities = _scan_identity_emails(store)
    result.identities = len(identities)
    log.info("%d identities with non-empty email", result.identities)
    identity_cleaner = IdentityEmailCleaner(
        store, validator, identities, result, identity_ids=ids, debug=debug
    )
    result.errors.extend(for_each(len(identities), threads, identity_cleaner))
    if result.updated or result.deleted:
        log.info(
            "updated %d identities, deleted %d, UUID mismatch: %d",
            result.updated,
            result.deleted,
            result.mismatches,
        )

    profiles = _scan_profile_emails(store)
    result.profiles = len(profiles)
    log.info("%d profiles with non-empty email", result.profiles)
    profile_cleaner = ProfileEmailCleaner(store, validator, profiles, result, debug=debug)
    result.errors.extend(for_each(len(profiles), threads, profile_cleaner))
    if result.profiles_updated:
        log.info("updated %d profiles", result.profiles_updated)

    if result.errors:
        log.error("email cleanup finished with %d errors", len(result.errors))
    return result


def _scan_identity_emails(store: IdentityStore) -> IdentityColumns:
    columns = IdentityColumns()
    for identity_id, source, name, username, email in store.query(IDENTITY_EMAILS_QUERY):
        columns.append(
            IdentityRecord(
                id=identity_id,
                uuid=None,
                source=source,
                name=name,
                username=username,
                email=email,
            )
        )
    return columns


def _scan_profile_emails(store: IdentityStore) -> ProfileEmails:
    profiles = ProfileEmails()
    for uuid, email in store.query(PROFILE_EMAILS_QUERY):
        profiles.uuids.append(uuid)
        profiles.emails.append(email)
    return profiles
