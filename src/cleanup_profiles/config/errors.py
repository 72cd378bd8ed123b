"""Errors raised while reading the job's environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A configuration value is present but unusable; the CLI exits with status 2."""


class MissingConfigurationError(ConfigurationError):
    """A required variable is unset or blank."""


class InvalidEndpointError(ConfigurationError):
    """``DB_ENDPOINT`` is neither a SQLAlchemy URL nor a MySQL DSN the job can translate."""
