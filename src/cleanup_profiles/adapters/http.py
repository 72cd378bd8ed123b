"""Synchronous httpx clients built from ``HttpClientConfig``."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypedDict

import httpx

if TYPE_CHECKING:
    from cleanup_profiles.config.http import HttpClientConfig


class ClientOptions(TypedDict, total=False):
    base_url: str
    timeout: float
    headers: dict[str, str]
    transport: httpx.BaseTransport


def build_http_client(
    config: HttpClientConfig,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Return a client that is safe to share between worker threads."""

    options: ClientOptions = {"timeout": config.timeout_seconds}
    if config.base_url is not None:
        options["base_url"] = config.base_url
    if config.default_headers:
        options["headers"] = dict(config.default_headers)
    if transport is not None:
        options["transport"] = transport
    return httpx.Client(**options)
