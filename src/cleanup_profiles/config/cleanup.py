"""Run switches for the cleanup jobs."""

from __future__ import annotations

from dataclasses import dataclass

from cleanup_profiles.domain.model import DuplicateKeyPolicy
from cleanup_profiles.domain.pool import resolve_thread_budget

from .env import env_flag, env_int, optional_env_var
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class CleanupConfig:
    threads: int = 1
    debug: bool = False
    sql_debug: bool = False
    delete_orphaned: bool = False
    validate_domain: bool = True
    cleanup_profiles: bool = False
    cleanup_emails: bool = False
    duplicate_key_policy: DuplicateKeyPolicy = DuplicateKeyPolicy.FIRST_SEEN


def parse_duplicate_key_policy(value: str | None) -> DuplicateKeyPolicy:
    if value is None:
        return DuplicateKeyPolicy.FIRST_SEEN
    try:
        return DuplicateKeyPolicy(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in DuplicateKeyPolicy)
        raise ConfigurationError(
            f"DUPLICATE_KEY_POLICY must be one of {choices}, got {value!r}"
        ) from exc


def get_cleanup_config(*, available_cpus: int | None = None) -> CleanupConfig:
    requested = env_int("N_CPUS")
    return CleanupConfig(
        threads=resolve_thread_budget(requested, available_cpus),
        debug=env_flag("DEBUG"),
        sql_debug=env_flag("SQLDEBUG"),
        delete_orphaned=env_flag("DELETE_ORPHANED"),
        validate_domain=not env_flag("SKIP_VALIDATE_DOMAIN"),
        cleanup_profiles=env_flag("CLEANUP_PROFILES"),
        cleanup_emails=env_flag("CLEANUP_EMAILS"),
        duplicate_key_policy=parse_duplicate_key_policy(optional_env_var("DUPLICATE_KEY_POLICY")),
    )
