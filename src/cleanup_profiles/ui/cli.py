from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from cleanup_profiles.app import build_token_provider, run_email_cleanup, run_profile_cleanup
from cleanup_profiles.config import (
    CleanupConfig,
    ConfigurationError,
    configure_logging,
    env_flag,
    get_affiliations_config,
    get_cleanup_config,
    get_database_config,
)
from cleanup_profiles.domain.pool import resolve_thread_budget

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

JOB_PROFILES = "profiles"
JOB_EMAILS = "emails"
JOB_ALL = "all"


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Merge duplicate identities and clean invalid emails in the affiliations DB"
    )
    parser.add_argument(
        "job",
        nargs="?",
        choices=(JOB_PROFILES, JOB_EMAILS, JOB_ALL),
        help="Job to run (defaults to CLEANUP_PROFILES / CLEANUP_EMAILS from the environment)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        help="Concurrency budget, capped to the CPU count (overrides N_CPUS)",
    )
    parser.add_argument(
        "--delete-orphaned",
        action="store_true",
        default=None,
        help="Delete profiles no identity references after merging (DELETE_ORPHANED)",
    )
    parser.add_argument(
        "--skip-validate-domain",
        action="store_true",
        default=None,
        help="Do not look up MX records when validating emails (SKIP_VALIDATE_DOMAIN)",
    )
    return parser.parse_args(list(argv))


def _apply_overrides(config: CleanupConfig, args: argparse.Namespace) -> CleanupConfig:
    changes: dict[str, object] = {}
    if args.threads is not None:
        if args.threads < 0:
            raise ValueError("--threads must be non-negative")
        changes["threads"] = resolve_thread_budget(args.threads)
    if args.delete_orphaned:
        changes["delete_orphaned"] = True
    if args.skip_validate_domain:
        changes["validate_domain"] = False
    return dataclasses.replace(config, **changes)


def _select_jobs(job: str | None, config: CleanupConfig) -> list[str]:
    if job == JOB_ALL:
        return [JOB_PROFILES, JOB_EMAILS]
    if job is not None:
        return [job]
    jobs: list[str] = []
    if config.cleanup_profiles:
        jobs.append(JOB_PROFILES)
    if config.cleanup_emails:
        jobs.append(JOB_EMAILS)
    return jobs


def _check_job_config(jobs: Sequence[str]) -> None:
    """Load the store and API settings the selected jobs need, failing before any work starts."""
    if not jobs:
        return
    get_database_config()
    if JOB_PROFILES in jobs:
        build_token_provider(get_affiliations_config())


def _run_job(job: str, config: CleanupConfig) -> None:
    if job == JOB_PROFILES:
        run_profile_cleanup(config=config).raise_for_errors()
    elif job == JOB_EMAILS:
        run_email_cleanup(config=config).raise_for_errors()
    else:
        raise ValueError(f"Unsupported job: {job}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging(debug=env_flag("DEBUG"))
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        config = _apply_overrides(get_cleanup_config(), parsed_args)
        jobs = _select_jobs(parsed_args.job, config)
        _check_job_config(jobs)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    if not jobs:
        log.warning("Nothing to do: pass a job or set CLEANUP_PROFILES / CLEANUP_EMAILS")
        return

    failed = False
    for job in jobs:
        try:
            _run_job(job, config)
        except Exception:
            log.exception("cleanup %s error", job)
            failed = True

    if failed:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point: load `.env`, trap Ctrl+C, run."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
