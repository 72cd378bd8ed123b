from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from cleanup_profiles.domain.email_cleanup import IdentityIdError, cleanup_emails
from cleanup_profiles.domain.emails import EmailValidator
from cleanup_profiles.domain.identity_ids import IdentityIdCache, derive_identity_id
from tests.helpers.fakes import FakeMxResolver
from tests.helpers.identities import (
    identity_rows,
    insert_identities,
    insert_profiles,
    make_identity,
    profile_emails,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from cleanup_profiles.adapters.sqlalchemy import SqlAlchemyIdentityStore


@pytest.fixture
def seeded(sqlite_engine: Engine) -> Engine:
    jane_id = derive_identity_id("git", "not-an-email", "Jane", "jane")
    insert_identities(
        sqlite_engine,
        make_identity(
            jane_id, "U1", source="git", name="Jane", username="jane", email="not-an-email"
        ),
        make_identity(
            "bob", "U2", source="git", name="Bob", username="bob", email="bob at example dot com"
        ),
        make_identity(
            "carl", "U3", source="github", name="Carl", username="carl", email="broken"
        ),
        make_identity(
            derive_identity_id("github", "", "Carl", "carl"),
            "U3",
            source="github",
            name="Carl",
            username="carl",
            email="",
        ),
    )
    insert_profiles(
        sqlite_engine,
        ("U1", "nope"),
        ("U2", "bob@example.com"),
        ("U3", ""),
    )
    return sqlite_engine


@pytest.mark.parametrize("threads", [1, 2])
def test_invalid_emails_are_cleared_and_identities_rekeyed(
    seeded: Engine, identity_store: SqlAlchemyIdentityStore, threads: int
) -> None:
    validator = EmailValidator(validate_domain=False)
    jane_old = derive_identity_id("git", "not-an-email", "Jane", "jane")
    jane_new = derive_identity_id("git", "", "Jane", "jane")
    carl_kept = derive_identity_id("github", "", "Carl", "carl")

    result = cleanup_emails(identity_store, validator, threads=threads)

    rows = identity_rows(seeded)
    assert jane_old not in rows
    assert rows[jane_new] == ("U1", "")
    assert rows["bob"] == ("U2", "bob at example dot com")
    assert "carl" not in rows
    assert rows[carl_kept] == ("U3", "")
    assert result.identities == 3
    assert result.updated == 1
    assert result.deleted == 1
    assert result.mismatches == 1
    assert result.ok


def test_invalid_profile_emails_are_cleared(
    seeded: Engine, identity_store: SqlAlchemyIdentityStore
) -> None:
    result = cleanup_emails(identity_store, EmailValidator(validate_domain=False))

    assert profile_emails(seeded) == {"U1": "", "U2": "bob@example.com", "U3": ""}
    assert result.profiles == 2
    assert result.profiles_updated == 1


def test_domains_without_mx_records_are_cleared(
    sqlite_engine: Engine, identity_store: SqlAlchemyIdentityStore
) -> None:
    insert_identities(
        sqlite_engine,
        make_identity("i1", "U1", source="git", name="Ann", email="ann@example.com"),
        make_identity("i2", "U2", source="git", name="Ben", email="ben@dead.example"),
    )
    resolver = FakeMxResolver({"example.com": True})

    result = cleanup_emails(identity_store, EmailValidator(mx_resolver=resolver))

    rows = identity_rows(sqlite_engine)
    assert rows["i1"] == ("U1", "ann@example.com")
    assert rows[derive_identity_id("git", "", "Ben", "")] == ("U2", "")
    assert result.updated == 1
    assert result.mismatches == 1


def test_identity_without_other_data_is_reported(
    sqlite_engine: Engine, identity_store: SqlAlchemyIdentityStore
) -> None:
    insert_identities(sqlite_engine, make_identity("i1", "U1", source="git", email="garbage"))
    identity_ids = IdentityIdCache()

    result = cleanup_emails(
        identity_store, EmailValidator(validate_domain=False), identity_ids=identity_ids
    )

    assert len(result.errors) == 1
    assert isinstance(result.errors[0], IdentityIdError)
    assert identity_rows(sqlite_engine)["i1"] == ("U1", "garbage")
    assert result.updated == 0
