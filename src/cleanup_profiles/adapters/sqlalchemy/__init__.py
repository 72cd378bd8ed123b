"""SQLAlchemy adapter package for the affiliations store."""

from __future__ import annotations

from .engine import (
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from .store import SqlAlchemyIdentityStore
from .tables import (
    create_all_tables,
    identities_table,
    metadata,
    profiles_table,
    uidentities_table,
)

__all__ = [
    "SqlAlchemyIdentityStore",
    "StartupError",
    "build_engine",
    "configured_engine",
    "create_all_tables",
    "identities_table",
    "is_started",
    "metadata",
    "profiles_table",
    "shutdown",
    "startup",
    "uidentities_table",
]
