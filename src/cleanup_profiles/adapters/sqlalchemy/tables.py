"""Table metadata for the affiliations store.

The schema is owned by the affiliations service; these definitions cover the
columns the cleanup jobs read and write, and are used to create throwaway
databases in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Column, DateTime, MetaData, String, Table, func

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

metadata = MetaData()

uidentities_table = Table(
    "uidentities",
    metadata,
    Column("uuid", String(128), primary_key=True),
    Column("last_modified", DateTime, server_default=func.current_timestamp()),
)

identities_table = Table(
    "identities",
    metadata,
    Column("id", String(128), primary_key=True),
    Column("uuid", String(128), nullable=True, index=True),
    Column("source", String(32), nullable=False),
    Column("name", String(128), nullable=True),
    Column("username", String(128), nullable=True),
    Column("email", String(128), nullable=True),
    Column("last_modified", DateTime, server_default=func.current_timestamp()),
)

profiles_table = Table(
    "profiles",
    metadata,
    Column("uuid", String(128), primary_key=True),
    Column("name", String(128), nullable=True),
    Column("email", String(128), nullable=True),
    Column("is_bot", Boolean, nullable=True),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine)
