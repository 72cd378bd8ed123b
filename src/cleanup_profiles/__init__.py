"""Merge duplicate identities and clear invalid emails in an affiliations database."""

from __future__ import annotations

from importlib import metadata

DISTRIBUTION_NAME = "cleanup-profiles"

try:
    __version__ = metadata.version(DISTRIBUTION_NAME)
except metadata.PackageNotFoundError:
    __version__ = "0.0.0+local"
