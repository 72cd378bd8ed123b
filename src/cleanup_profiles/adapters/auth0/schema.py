"""Pydantic models for the Auth0 client-credentials exchange."""

from __future__ import annotations

import base64
import binascii
from typing import Self

from pydantic import BaseModel, ConfigDict, ValidationError

from cleanup_profiles.config.errors import ConfigurationError


class Auth0BaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Auth0Data(Auth0BaseModel):
    """Decoded ``AUTH0_DATA``; unrelated keys in the payload are ignored."""

    env: str = ""
    grant_type: str = "client_credentials"
    client_id: str
    client_secret: str
    audience: str
    url: str

    @classmethod
    def from_encoded(cls, encoded: str) -> Self:
        try:
            raw = base64.b64decode(encoded.strip(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ConfigurationError("AUTH0_DATA is not valid base64") from exc
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"AUTH0_DATA payload is invalid: {exc}") from exc

    def token_request(self) -> dict[str, str]:
        return {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
        }


class TokenResponse(Auth0BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
