"""Process-wide SQLAlchemy engine lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

DEFAULT_POOL_SIZE = 5


class StartupError(RuntimeError):
    """Raised when the store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None


_STATE = _AdapterState()


def build_engine(database_uri: str, *, pool_size: int | None = None) -> Engine:
    """Create an engine whose pool can serve one connection per worker thread."""

    url = make_url(database_uri)
    if url.get_backend_name() == "sqlite":
        return create_engine(url, connect_args={"timeout": 30})
    return create_engine(
        url,
        pool_size=max(pool_size or 0, DEFAULT_POOL_SIZE),
        pool_pre_ping=True,
    )


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    pool_size: int | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the engine shared by the store adapters."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )
    if engine is None:
        if database_uri is None:
            raise StartupError("Either an engine or a database URI is required")
        engine = build_engine(database_uri, pool_size=pool_size)
    if _STATE.engine is not None and _STATE.engine is not engine:
        _STATE.engine.dispose()
    _STATE.engine = engine
    return engine


def configured_engine() -> Engine:
    if _STATE.engine is None:
        raise StartupError(
            "SQLAlchemy adapter not initialised. Call "
            "cleanup_profiles.adapters.sqlalchemy.startup() first."
        )
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
