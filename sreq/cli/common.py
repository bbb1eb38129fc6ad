"""Helpers shared by the sreq commands."""

import sys
from pathlib import Path
from typing import NoReturn

import click
import structlog

from sreq.cache.cache import CredentialCache, is_cache_disabled
from sreq.config.settings import RuntimeSettings, SreqConfig
from sreq.enums import ErrorKind
from sreq.exceptions import EncryptionError, SreqError

log = structlog.get_logger(__name__)

# Exit codes for semantic error reporting
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_NOT_FOUND = 3
EXIT_PROVIDER_ERROR = 4
EXIT_ENCRYPTION_ERROR = 5

EXIT_CODES = {
    ErrorKind.CONFIG: EXIT_CONFIG_ERROR,
    ErrorKind.VALIDATION: EXIT_CONFIG_ERROR,
    ErrorKind.NOT_FOUND: EXIT_NOT_FOUND,
    ErrorKind.PROVIDER: EXIT_PROVIDER_ERROR,
    ErrorKind.NETWORK: EXIT_PROVIDER_ERROR,
    ErrorKind.ENCRYPTION: EXIT_ENCRYPTION_ERROR,
}


def fail(error: SreqError) -> NoReturn:
    """Print an sreq error with its suggestion and exit with the matching code."""
    click.echo(click.style(f"Error: {error.message}", fg="red"), err=True)
    if error.cause is not None:
        click.echo(f"  Cause: {error.cause}", err=True)
    if error.suggestion:
        click.echo(click.style(f"Suggestion: {error.suggestion}", fg="yellow"), err=True)
    log.debug("command_failed", kind=str(error.kind), exc_info=True)
    sys.exit(EXIT_CODES.get(error.kind, EXIT_FAILURE))


def runtime_settings(ctx: click.Context) -> RuntimeSettings:
    return ctx.obj["settings"]


def load_config(ctx: click.Context) -> SreqConfig:
    """Load the configuration selected by ``--config`` or the runtime settings."""
    config_path: str | None = ctx.obj.get("config_path")
    if config_path:
        return SreqConfig.from_yaml(Path(config_path))
    return SreqConfig.load(runtime_settings(ctx).resolved_config_dir)


def open_cache(settings: RuntimeSettings) -> CredentialCache | None:
    """Open the credential cache, or return None when it is disabled or unusable."""
    if settings.no_cache or is_cache_disabled():
        return None
    try:
        return CredentialCache(settings.resolved_config_dir, ttl=settings.cache_ttl)
    except EncryptionError as e:
        log.warning("cache_unavailable", error=e.message)
        return None
