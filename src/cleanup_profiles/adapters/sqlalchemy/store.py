"""Identity store backed by a SQLAlchemy engine."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cleanup_profiles.domain.errors import DuplicateEntryError

from .engine import configured_engine

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.engine import Connection, Engine

    from cleanup_profiles.domain.ports import Params, Row

log = getLogger(__name__)

# driver messages for primary key / unique index violations (MySQL, SQLite, PostgreSQL)
_DUPLICATE_MARKERS: Final[tuple[str, ...]] = (
    "Duplicate entry",
    "UNIQUE constraint failed",
    "duplicate key value",
)


def _is_duplicate_entry(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in _DUPLICATE_MARKERS)


def _format_params(params: Params | None) -> str:
    if not params:
        return ""
    return " ".join(
        f"{name}:{'(null)' if value is None else value}" for name, value in params.items()
    )


class SqlAlchemyIdentityStore:
    """Run raw parameterized statements, optionally on a caller's transaction.

    Without a ``connection`` every ``execute`` commits on its own and every
    ``query`` uses a short-lived connection, so concurrent units never share
    one.
    """

    def __init__(self, engine: Engine | None = None, *, sql_debug: bool = False) -> None:
        self._engine = engine if engine is not None else configured_engine()
        self.sql_debug = sql_debug

    @property
    def engine(self) -> Engine:
        return self._engine

    def query(
        self,
        statement: str,
        params: Params | None = None,
        *,
        connection: Connection | None = None,
    ) -> Sequence[Row]:
        try:
            if connection is not None:
                rows = self._fetch_all(connection, statement, params)
            else:
                with self._engine.connect() as owned:
                    rows = self._fetch_all(owned, statement, params)
        except SQLAlchemyError:
            log.exception("query failed")
            self._log_statement(statement, params)
            raise
        if self.sql_debug:
            self._log_statement(statement, params)
        return rows

    def execute(
        self,
        statement: str,
        params: Params | None = None,
        *,
        connection: Connection | None = None,
    ) -> int:
        try:
            if connection is not None:
                affected = connection.execute(text(statement), dict(params or {})).rowcount
            else:
                with self._engine.begin() as owned:
                    affected = owned.execute(text(statement), dict(params or {})).rowcount
        except IntegrityError as exc:
            self._log_statement(statement, params)
            if _is_duplicate_entry(exc):
                raise DuplicateEntryError(str(exc.orig)) from exc
            log.exception("exec failed")
            raise
        except SQLAlchemyError:
            log.exception("exec failed")
            self._log_statement(statement, params)
            raise
        if self.sql_debug:
            self._log_statement(statement, params)
        return affected

    @staticmethod
    def _fetch_all(connection: Connection, statement: str, params: Params | None) -> list[Row]:
        result = connection.execute(text(statement), dict(params or {}))
        try:
            return [tuple(row) for row in result]
        finally:
            result.close()

    @staticmethod
    def _log_statement(statement: str, params: Params | None) -> None:
        formatted = _format_params(params)
        if formatted:
            log.info("%s [%s]", statement, formatted)
        else:
            log.info("%s", statement)
