"""Public interface for the Auth0 token adapter."""

from __future__ import annotations

from .client import (
    Auth0TokenProvider,
    StaticTokenProvider,
    TokenCache,
    TokenError,
    as_bearer,
)
from .schema import Auth0Data, TokenResponse

__all__ = [
    "Auth0Data",
    "Auth0TokenProvider",
    "StaticTokenProvider",
    "TokenCache",
    "TokenError",
    "TokenResponse",
    "as_bearer",
]
