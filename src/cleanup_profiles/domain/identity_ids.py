"""Deterministic identity ids derived from ``(source, email, name, username)``."""

from __future__ import annotations

import hashlib
import unicodedata
from logging import getLogger

from .caches import RunCache

log = getLogger(__name__)


def _to_text(value: str | None, *, unaccent: bool = False) -> str:
    if value is None:
        return ""
    if unaccent:
        decomposed = unicodedata.normalize("NFD", value)
        value = "".join(char for char in decomposed if unicodedata.category(char) != "Mn")
    return value


def derive_identity_id(
    source: str,
    email: str | None,
    name: str | None,
    username: str | None,
) -> str:
    """Return the sha1 hex id of an identity.

    The components are joined with ``:`` and lowercased; ``None`` counts as
    empty and accents are stripped from the name only.
    """

    if not source:
        raise ValueError("source cannot be empty")
    if not (email or name or username):
        raise ValueError("identity data cannot be empty")

    joined = ":".join(
        (
            _to_text(source),
            _to_text(email),
            _to_text(name, unaccent=True),
            _to_text(username),
        )
    ).lower()
    return hashlib.sha1(joined.encode("utf-8", errors="surrogateescape")).hexdigest()  # noqa: S324


class IdentityIdCache:
    """Memoize derived ids for the run; failed derivations are cached as ``""``."""

    def __init__(self, *, concurrent: bool = False) -> None:
        self._cache: RunCache[str, str] = RunCache(concurrent=concurrent)

    def __len__(self) -> int:
        return len(self._cache)

    def derive(self, source: str, email: str, name: str, username: str) -> str:
        key = ":".join((source, email, name, username))
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        try:
            identity_id = derive_identity_id(source, email, name, username)
        except ValueError:
            log.warning("cannot derive identity id for: %r", (source, email, name, username))
            identity_id = ""
        self._cache.put(key, identity_id)
        return identity_id
