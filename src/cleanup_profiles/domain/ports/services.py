"""Ports for the external services the cleanup jobs call."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MergeApi(Protocol):
    """Idempotent "merge profile A into profile B, then archive A" operation."""

    def merge_unique_identities(self, from_uuid: str, to_uuid: str) -> None: ...


@runtime_checkable
class TokenProvider(Protocol):
    """Obtain a fresh API token from an identity provider."""

    def get_token(self) -> str: ...


@runtime_checkable
class MxResolver(Protocol):
    """Return whether the domain publishes at least one MX record."""

    def __call__(self, domain: str) -> bool: ...
