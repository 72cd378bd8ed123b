"""Ports for the relational affiliations store."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

type Row = Sequence[Any]
type Params = Mapping[str, object]


@runtime_checkable
class IdentityStore(Protocol):
    """Parameterized reads and writes, optionally inside a caller-owned transaction.

    ``query`` returns fully drained rows: the cursor is closed before it
    returns, so callers can fan out writes without holding a read open.
    ``execute`` returns the affected row count and raises
    ``DuplicateEntryError`` on uniqueness violations.
    """

    def query(
        self,
        statement: str,
        params: Params | None = None,
        *,
        connection: Connection | None = None,
    ) -> Sequence[Row]: ...

    def execute(
        self,
        statement: str,
        params: Params | None = None,
        *,
        connection: Connection | None = None,
    ) -> int: ...
