"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from cleanup_profiles.adapters.affiliations import AffiliationsClient
from cleanup_profiles.adapters.auth0 import Auth0TokenProvider, StaticTokenProvider, TokenCache
from cleanup_profiles.adapters.mx import DnsMxResolver
from cleanup_profiles.adapters.sqlalchemy import (
    SqlAlchemyIdentityStore,
    configured_engine,
    is_started,
    startup,
)
from cleanup_profiles.config import (
    CleanupConfig,
    get_affiliations_config,
    get_cleanup_config,
    get_database_config,
)
from cleanup_profiles.domain.caches import ValidityCache
from cleanup_profiles.domain.email_cleanup import EmailCleanupResult, cleanup_emails
from cleanup_profiles.domain.emails import EmailValidator
from cleanup_profiles.domain.identity_ids import IdentityIdCache
from cleanup_profiles.domain.merging import ProfileCleanupResult, cleanup_profiles

if TYPE_CHECKING:
    from cleanup_profiles.config import AffiliationsConfig
    from cleanup_profiles.domain.ports import IdentityStore, MergeApi, MxResolver, TokenProvider


log = getLogger(__name__)


def build_identity_store(config: CleanupConfig) -> SqlAlchemyIdentityStore:
    """Connect to ``DB_ENDPOINT`` once per process and wrap the engine."""

    if not is_started():
        startup(database_uri=get_database_config().uri, pool_size=config.threads)
    return SqlAlchemyIdentityStore(configured_engine(), sql_debug=config.sql_debug)


def build_token_provider(config: AffiliationsConfig) -> TokenProvider:
    if config.jwt_token is not None:
        log.info("using static API token from JWT_TOKEN")
        return StaticTokenProvider(config.jwt_token)
    if config.auth0_data is None:
        raise ValueError("Either a static token or Auth0 data is required")
    provider = Auth0TokenProvider.from_encoded(config.auth0_data)
    log.info("using Auth0 token provider (env=%s)", provider.env or "-")
    return provider


def build_affiliations_client(config: AffiliationsConfig | None = None) -> AffiliationsClient:
    effective_config = config or get_affiliations_config()
    tokens = TokenCache(build_token_provider(effective_config))
    return AffiliationsClient(config=effective_config, tokens=tokens)


def run_profile_cleanup(
    *,
    config: CleanupConfig | None = None,
    store: IdentityStore | None = None,
    merge_api: MergeApi | None = None,
) -> ProfileCleanupResult:
    """Merge duplicate identities into their named counterparts."""

    effective_config = config or get_cleanup_config()
    effective_store = store or build_identity_store(effective_config)
    log.info(
        "Starting profile cleanup: threads=%s, delete_orphaned=%s, duplicate_keys=%s",
        effective_config.threads,
        effective_config.delete_orphaned,
        effective_config.duplicate_key_policy.value,
    )

    def run(api: MergeApi) -> ProfileCleanupResult:
        return cleanup_profiles(
            effective_store,
            api,
            threads=effective_config.threads,
            delete_orphaned=effective_config.delete_orphaned,
            duplicate_key_policy=effective_config.duplicate_key_policy,
            debug=effective_config.debug,
        )

    if merge_api is not None:
        result = run(merge_api)
    else:
        with build_affiliations_client() as client:
            result = run(client)

    log.info(
        "Finished profile cleanup: candidates=%s, targets=%s, merges=%s, orphans_deleted=%s, "
        "errors=%s",
        result.candidates,
        result.targets,
        result.merges,
        result.orphans_deleted,
        len(result.errors),
    )
    return result


def run_email_cleanup(
    *,
    config: CleanupConfig | None = None,
    store: IdentityStore | None = None,
    mx_resolver: MxResolver | None = None,
) -> EmailCleanupResult:
    """Clear invalid identity and profile emails."""

    effective_config = config or get_cleanup_config()
    effective_store = store or build_identity_store(effective_config)
    concurrent = effective_config.threads > 1
    validity = ValidityCache(concurrent=concurrent)
    validator = EmailValidator(
        validate_domain=effective_config.validate_domain,
        mx_resolver=(mx_resolver or DnsMxResolver()) if effective_config.validate_domain else None,
        cache=validity,
    )
    log.info(
        "Starting email cleanup: threads=%s, validate_domain=%s",
        effective_config.threads,
        effective_config.validate_domain,
    )

    result = cleanup_emails(
        effective_store,
        validator,
        threads=effective_config.threads,
        identity_ids=IdentityIdCache(concurrent=concurrent),
        debug=effective_config.debug,
    )

    if effective_config.debug:
        log.debug("email cache: %s", validity.addresses.snapshot())
        log.debug("domain cache: %s", validity.domains.snapshot())
    log.info(
        "Finished email cleanup: identities=%s, updated=%s, deleted=%s, mismatches=%s, "
        "profiles=%s, profiles_updated=%s, errors=%s",
        result.identities,
        result.updated,
        result.deleted,
        result.mismatches,
        result.profiles,
        result.profiles_updated,
        len(result.errors),
    )
    return result
