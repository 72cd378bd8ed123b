"""Canonical matching keys for identities."""

from __future__ import annotations

KEY_SEPARATOR = ":"


def canonical_key(source: str, username: str | None, email: str | None) -> str:
    """Return ``source[:username][:email]``, leaving out blank components."""

    key = source
    for component in (username, email):
        if component is None:
            continue
        trimmed = component.strip()
        if trimmed:
            key += KEY_SEPARATOR + trimmed
    return key
