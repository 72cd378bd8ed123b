"""Configuration types for HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(slots=True, frozen=True)
class HttpClientConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    default_headers: Mapping[str, str] | None = None
