"""Cache-first credential lookup."""

import structlog

from sreq.cache.cache import CredentialCache, is_cache_disabled
from sreq.exceptions import EncryptionError, NotFoundError, base_url_missing
from sreq.models.domain import ResolvedCredentials
from sreq.resolver import CredentialResolver, ResolveOptions

log = structlog.get_logger(__name__)


def get_credentials(
    resolver: CredentialResolver,
    options: ResolveOptions,
    cache: CredentialCache | None = None,
    no_cache: bool = False,
    offline: bool = False,
    require_base_url: bool = False,
) -> ResolvedCredentials:
    """Return credentials from the cache, resolving and caching on a miss.

    Args:
        resolver: Resolver used on a cache miss
        options: Service, variables and deadline
        cache: Cache to consult, or None to always resolve
        no_cache: Skip the cache for both reads and writes
        offline: Only use cached credentials, never contact a backend
        require_base_url: Fail when the result has no ``base_url``

    Returns:
        Resolved credentials

    Raises:
        NotFoundError: If ``offline`` is set and nothing is cached
        ValidationError: If ``require_base_url`` is set and ``base_url`` is empty
        SreqError: Any resolution failure
    """
    use_cache = cache is not None and not no_cache and not is_cache_disabled()

    credentials: ResolvedCredentials | None = None
    if use_cache:
        credentials = cache.get(options.service, options.env)

    if credentials is None:
        if offline:
            raise NotFoundError(
                f"No cached credentials for '{options.service}' in '{options.env}' (offline mode)",
                suggestion="Run the command once without --offline to populate the cache.",
            )

        credentials = resolver.resolve(options)
        if use_cache:
            try:
                cache.set(options.service, options.env, credentials)
            except EncryptionError as e:
                log.warning(
                    "cache_write_failed",
                    service=options.service,
                    env=options.env,
                    error=e.message,
                )

    if require_base_url and not credentials.base_url:
        raise base_url_missing(options.service, options.env)
    return credentials
