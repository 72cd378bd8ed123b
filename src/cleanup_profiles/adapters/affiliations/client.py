"""HTTP client for the affiliations API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx

from cleanup_profiles.adapters.http import build_http_client

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from cleanup_profiles.adapters.auth0 import TokenCache
    from cleanup_profiles.config.affiliations import AffiliationsConfig
    from cleanup_profiles.config.http import HttpClientConfig
    from cleanup_profiles.domain.ports import MergeApi

log = getLogger(__name__)

MERGE_PATH: Final[str] = "/v1/affiliation/no-project/merge_unique_identities/{from_uuid}/{to_uuid}"


class AffiliationsAPIError(RuntimeError):
    """Raised when the affiliations API answers with anything but 200."""

    def __init__(self, *, method: str, path: str, status_code: int, body: str) -> None:
        super().__init__(f"method:{method} url:{path} status:{status_code}\n{body}")
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body


class AffiliationsClient:
    """Authorized calls to the affiliations API.

    A 401 invalidates the token and retries once with a fresh one; there is
    no other retry.
    """

    def __init__(
        self,
        *,
        config: AffiliationsConfig,
        tokens: TokenCache,
        client_factory: Callable[[HttpClientConfig], httpx.Client] = build_http_client,
    ) -> None:
        self._config = config
        self._tokens = tokens
        self._client = client_factory(config.http)

    def __enter__(self) -> AffiliationsClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def merge_unique_identities(self, from_uuid: str, to_uuid: str) -> None:
        path = MERGE_PATH.format(from_uuid=from_uuid, to_uuid=to_uuid)
        self._put(path, params={"archive": "true"})

    def _put(self, path: str, *, params: dict[str, str]) -> httpx.Response:
        method = "PUT"
        token = self._tokens.get_valid()
        response = self._send(method, path, params=params, token=token)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            log.warning("token is invalid, trying to generate another one")
            self._tokens.invalidate(token)
            response = self._send(method, path, params=params, token=self._tokens.get_valid())
        if response.status_code != httpx.codes.OK:
            raise AffiliationsAPIError(
                method=method,
                path=path,
                status_code=response.status_code,
                body=response.text,
            )
        return response

    def _send(
        self, method: str, path: str, *, params: dict[str, str], token: str
    ) -> httpx.Response:
        return self._client.request(method, path, params=params, headers={"Authorization": token})


if TYPE_CHECKING:
    _merge_api_check: type[MergeApi] = AffiliationsClient
