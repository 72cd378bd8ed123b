from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from cleanup_profiles.adapters.affiliations import AffiliationsAPIError, AffiliationsClient
from cleanup_profiles.adapters.auth0 import StaticTokenProvider, TokenCache
from cleanup_profiles.config import AffiliationsConfig, HttpClientConfig
from tests.helpers.fakes import SequenceTokenProvider

if TYPE_CHECKING:
    from collections.abc import Callable

    from cleanup_profiles.domain.ports import TokenProvider

API_URL = "https://api.example.test"
MERGE_URL_PATH = "/v1/affiliation/no-project/merge_unique_identities/U2/U1"


def _config() -> AffiliationsConfig:
    return AffiliationsConfig(
        http=HttpClientConfig(name="affiliations", base_url=API_URL),
        jwt_token="static",
    )


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
    provider: TokenProvider,
) -> AffiliationsClient:
    def factory(config: HttpClientConfig) -> httpx.Client:
        return httpx.Client(base_url=config.base_url or "", transport=httpx.MockTransport(handler))

    return AffiliationsClient(config=_config(), tokens=TokenCache(provider), client_factory=factory)


def test_merge_sends_authorized_put() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    with _client(handler, StaticTokenProvider("abc")) as client:
        client.merge_unique_identities("U2", "U1")

    assert len(requests) == 1
    request = requests[0]
    assert request.method == "PUT"
    assert request.url.path == MERGE_URL_PATH
    assert request.url.params["archive"] == "true"
    assert request.headers["Authorization"] == "Bearer abc"


def test_unauthorized_refreshes_token_once() -> None:
    seen_tokens: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        token = request.headers["Authorization"]
        seen_tokens.append(token)
        if token == "Bearer old":
            return httpx.Response(401, text="expired")
        return httpx.Response(200, json={})

    provider = SequenceTokenProvider("old", "new")
    with _client(handler, provider) as client:
        client.merge_unique_identities("U2", "U1")
        client.merge_unique_identities("U3", "U1")

    assert seen_tokens == ["Bearer old", "Bearer new", "Bearer new"]
    assert provider.calls == 2


def test_repeated_unauthorized_raises_api_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="denied")

    provider = SequenceTokenProvider("old", "new")
    with _client(handler, provider) as client, pytest.raises(AffiliationsAPIError) as excinfo:
        client.merge_unique_identities("U2", "U1")

    assert excinfo.value.status_code == 401
    assert provider.calls == 2


def test_non_ok_status_raises_with_body() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with _client(handler, StaticTokenProvider("abc")) as client:
        with pytest.raises(AffiliationsAPIError) as excinfo:
            client.merge_unique_identities("U2", "U1")

    error = excinfo.value
    assert error.method == "PUT"
    assert error.path == MERGE_URL_PATH
    assert error.status_code == 500
    assert error.body == "boom"
    assert "status:500" in str(error)
