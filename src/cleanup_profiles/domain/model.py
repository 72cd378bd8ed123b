"""Run-scoped records, indexes and decisions.

Everything here is built fresh for one run and discarded at exit; nothing is
persisted by the job itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self


class DuplicateKeyPolicy(StrEnum):
    """What to do when two merge targets share a canonical key."""

    FIRST_SEEN = "first-seen"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class IdentityRecord:
    id: str
    uuid: str | None
    source: str
    name: str | None = None
    username: str | None = None
    email: str | None = None


@dataclass(slots=True)
class IdentityColumns:
    """Columnar materialization of an identity scan, one list per field, row order kept."""

    ids: list[str] = field(default_factory=list[str])
    uuids: list[str | None] = field(default_factory=list[str | None])
    sources: list[str] = field(default_factory=list[str])
    names: list[str | None] = field(default_factory=list[str | None])
    usernames: list[str | None] = field(default_factory=list[str | None])
    emails: list[str | None] = field(default_factory=list[str | None])

    def __len__(self) -> int:
        return len(self.ids)

    def append(self, record: IdentityRecord) -> None:
        self.ids.append(record.id)
        self.uuids.append(record.uuid)
        self.sources.append(record.source)
        self.names.append(record.name)
        self.usernames.append(record.username)
        self.emails.append(record.email)

    def record(self, index: int) -> IdentityRecord:
        return IdentityRecord(
            id=self.ids[index],
            uuid=self.uuids[index],
            source=self.sources[index],
            name=self.names[index],
            username=self.usernames[index],
            email=self.emails[index],
        )

    @classmethod
    def from_records(cls, records: list[IdentityRecord]) -> Self:
        columns = cls()
        for record in records:
            columns.append(record)
        return columns


@dataclass(slots=True)
class TargetIndex:
    """Canonical key to the first-seen merge target; read-only once built."""

    ids_by_key: dict[str, str] = field(default_factory=dict[str, str])
    uuids_by_key: dict[str, str] = field(default_factory=dict[str, str])
    duplicate_keys: set[str] = field(default_factory=set[str])

    def __len__(self) -> int:
        return len(self.ids_by_key)

    def __contains__(self, key: object) -> bool:
        return key in self.ids_by_key

    def target_uuid(self, key: str) -> str | None:
        return self.uuids_by_key.get(key)

    def target_id(self, key: str) -> str | None:
        return self.ids_by_key.get(key)


@dataclass(frozen=True, slots=True)
class MergeDecision:
    """Either skip the candidate or merge ``source_uuid`` into ``target_uuid``."""

    index: int
    source_uuid: str | None = None
    target_uuid: str | None = None
    candidate_id: str | None = None
    target_id: str | None = None

    @classmethod
    def skip(cls, index: int) -> Self:
        return cls(index=index)

    @property
    def should_merge(self) -> bool:
        return self.source_uuid is not None and self.target_uuid is not None

    @property
    def is_complex(self) -> bool:
        """The candidate was already affiliated to a profile other than its own id."""

        return self.should_merge and self.candidate_id != self.source_uuid
