from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from cleanup_profiles.adapters.sqlalchemy import (
    SqlAlchemyIdentityStore,
    build_engine,
    create_all_tables,
    shutdown,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # file-backed so that worker threads each get their own connection
    engine = build_engine(f"sqlite+pysqlite:///{tmp_path / 'affiliations.db'}")
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def identity_store(sqlite_engine: Engine) -> SqlAlchemyIdentityStore:
    return SqlAlchemyIdentityStore(sqlite_engine)


@pytest.fixture(autouse=True)
def reset_engine_state() -> Iterator[None]:
    yield
    shutdown()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every variable the job reads so tests start from defaults."""

    for name in (
        "API_URL",
        "AUTH0_DATA",
        "CLEANUP_EMAILS",
        "CLEANUP_PROFILES",
        "DB_ENDPOINT",
        "DEBUG",
        "DELETE_ORPHANED",
        "DUPLICATE_KEY_POLICY",
        "JWT_TOKEN",
        "N_CPUS",
        "SKIP_VALIDATE_DOMAIN",
        "SQLDEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
