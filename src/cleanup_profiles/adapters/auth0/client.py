"""Bearer tokens for the affiliations API."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING, Final, Self

import httpx
from pydantic import ValidationError

from cleanup_profiles.adapters.http import build_http_client
from cleanup_profiles.config.http import HttpClientConfig
from cleanup_profiles.domain.errors import FatalAuthorizationError

from .schema import Auth0Data, TokenResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from cleanup_profiles.domain.ports import TokenProvider

log = getLogger(__name__)

BEARER_PREFIX: Final[str] = "Bearer "
AUTH0_TIMEOUT_SECONDS: Final[float] = 60.0


class TokenError(RuntimeError):
    """Raised when the identity provider does not hand out a token."""


def as_bearer(token: str) -> str:
    token = token.strip()
    if token.lower().startswith(BEARER_PREFIX.lower()):
        return token
    return BEARER_PREFIX + token


class StaticTokenProvider:
    """Token supplied out-of-band, e.g. through ``JWT_TOKEN``."""

    def __init__(self, token: str) -> None:
        self._token = token

    def get_token(self) -> str:
        return self._token


class Auth0TokenProvider:
    """Client-credentials exchange against the Auth0 token endpoint."""

    def __init__(
        self,
        data: Auth0Data,
        *,
        client_factory: Callable[[HttpClientConfig], httpx.Client] = build_http_client,
    ) -> None:
        self._data = data
        self._client_factory = client_factory
        self._http = HttpClientConfig(name="auth0", timeout_seconds=AUTH0_TIMEOUT_SECONDS)

    @classmethod
    def from_encoded(
        cls,
        encoded: str,
        *,
        client_factory: Callable[[HttpClientConfig], httpx.Client] = build_http_client,
    ) -> Self:
        return cls(Auth0Data.from_encoded(encoded), client_factory=client_factory)

    @property
    def env(self) -> str:
        return self._data.env

    def get_token(self) -> str:
        with self._client_factory(self._http) as client:
            try:
                response = client.post(self._data.url, json=self._data.token_request())
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise TokenError(f"token request to {self._data.url} failed: {exc}") from exc
            try:
                payload = TokenResponse.model_validate(response.json())
            except (ValueError, ValidationError) as exc:
                raise TokenError(f"unexpected token response: {exc}") from exc

        if not payload.access_token.strip():
            raise TokenError("identity provider returned an empty token")
        log.info("obtained API token (env=%s)", self._data.env or "-")
        return payload.access_token


class TokenCache:
    """Hold the current bearer token; refreshes are single-flight.

    ``invalidate`` only drops the token a caller actually saw rejected, so a
    burst of concurrent 401s triggers one refresh instead of one per unit.
    """

    def __init__(self, provider: TokenProvider) -> None:
        self._provider = provider
        self._lock = threading.Lock()
        self._token: str | None = None

    def get_valid(self) -> str:
        with self._lock:
            if self._token is None:
                log.info("obtaining API token")
                try:
                    token = self._provider.get_token()
                except TokenError as exc:
                    log.exception("get API token error")
                    raise FatalAuthorizationError(f"cannot obtain API token: {exc}") from exc
                self._token = as_bearer(token)
            return self._token

    def invalidate(self, stale: str | None = None) -> None:
        with self._lock:
            if stale is None or self._token == stale:
                self._token = None
