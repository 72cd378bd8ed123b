"""Public interface for the affiliations API adapter."""

from __future__ import annotations

from .client import MERGE_PATH, AffiliationsAPIError, AffiliationsClient

__all__ = [
    "MERGE_PATH",
    "AffiliationsAPIError",
    "AffiliationsClient",
]
