"""Affiliations API and token configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_var
from .errors import MissingConfigurationError
from .http import DEFAULT_TIMEOUT_SECONDS, HttpClientConfig


@dataclass(frozen=True, slots=True)
class AffiliationsConfig:
    """Where merges are sent and how the bearer token is obtained.

    ``jwt_token`` bypasses the identity provider entirely; otherwise
    ``auth0_data`` holds the base64-encoded client-credentials payload.
    """

    http: HttpClientConfig
    jwt_token: str | None = None
    auth0_data: str | None = None


def get_affiliations_config() -> AffiliationsConfig:
    api_url = require_env_var("API_URL").strip().rstrip("/")
    jwt_token = optional_env_var("JWT_TOKEN")
    auth0_data = optional_env_var("AUTH0_DATA")
    if jwt_token is None and auth0_data is None:
        raise MissingConfigurationError(
            "Missing configuration for: AUTH0_DATA (or a static token in JWT_TOKEN)"
        )
    return AffiliationsConfig(
        http=HttpClientConfig(
            name="affiliations",
            base_url=api_url,
            timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
        ),
        jwt_token=jwt_token,
        auth0_data=auth0_data,
    )
