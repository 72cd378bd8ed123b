"""Application configuration helpers."""

from __future__ import annotations

from .affiliations import AffiliationsConfig, get_affiliations_config
from .cleanup import CleanupConfig, get_cleanup_config, parse_duplicate_key_policy
from .env import env_flag, env_int, optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, InvalidEndpointError, MissingConfigurationError
from .http import HttpClientConfig
from .logging import configure_logging
from .storage import DatabaseConfig, database_uri_from_endpoint, get_database_config

__all__ = [
    "AffiliationsConfig",
    "CleanupConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "HttpClientConfig",
    "InvalidEndpointError",
    "MissingConfigurationError",
    "configure_logging",
    "database_uri_from_endpoint",
    "env_flag",
    "env_int",
    "get_affiliations_config",
    "get_cleanup_config",
    "get_database_config",
    "optional_env_var",
    "parse_duplicate_key_policy",
    "require_env_var",
    "require_env_vars",
]
