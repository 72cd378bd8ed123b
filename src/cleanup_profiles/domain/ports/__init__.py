"""Ports implemented by adapters and consumed by the domain services."""

from __future__ import annotations

from .persistence import IdentityStore, Params, Row
from .services import MergeApi, MxResolver, TokenProvider

__all__ = [
    "IdentityStore",
    "MergeApi",
    "MxResolver",
    "Params",
    "Row",
    "TokenProvider",
]
