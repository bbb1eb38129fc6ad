"""Exception hierarchy for sreq.

Every error raised by the resolution engine and the credential cache derives
from ``SreqError``. Each error carries a human-readable message, an optional
underlying cause and an optional suggestion telling the user how to fix the
problem. Callers branch on the exception class or on its ``kind``.

Exception Hierarchy:
    SreqError (base)
    ├── ConfigError
    ├── NotFoundError
    ├── ProviderError
    │   └── PathResolutionFailed
    ├── ValidationError
    ├── NetworkError
    └── EncryptionError

Example Usage:
    >>> from sreq.exceptions import NotFoundError
    >>> try:
    ...     resolver.resolve(ResolveOptions(service="billing", env="dev"))
    ... except NotFoundError as e:
    ...     print(e.suggestion)
"""

from sreq.enums import ErrorKind


class SreqError(Exception):
    """Base exception for all sreq errors.

    Attributes:
        message: Human-readable error description
        cause: Underlying exception, if any
        suggestion: Optional remediation hint
        kind: Error category (class-level)
    """

    kind: ErrorKind = ErrorKind.PROVIDER

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            cause: Underlying exception that triggered this error
            suggestion: Optional suggestion for resolution
        """
        self.message = message
        self.cause = cause
        self.suggestion = suggestion

        full_message = message
        if cause is not None:
            full_message = f"{full_message}\n  Cause: {cause}"
        if suggestion:
            full_message = f"{full_message}\n  Suggestion: {suggestion}"

        super().__init__(full_message)
        if cause is not None:
            self.__cause__ = cause


class ConfigError(SreqError):
    """Malformed or missing provider, service or configuration file."""

    kind = ErrorKind.CONFIG


class NotFoundError(SreqError):
    """A service, context, secret key or JSON field does not exist."""

    kind = ErrorKind.NOT_FOUND


class ProviderError(SreqError):
    """A backend is unreachable, unauthenticated or misconfigured.

    Also raised when a path specification names a backend that was never
    initialized.
    """

    kind = ErrorKind.PROVIDER


class PathResolutionFailed(ProviderError):
    """A single advanced-mode field could not be resolved.

    Attributes:
        field: Credential field whose path failed
    """

    def __init__(
        self,
        message: str,
        field: str,
        cause: BaseException | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.field = field
        super().__init__(message, cause=cause, suggestion=suggestion)


class ValidationError(SreqError):
    """Malformed path specification, path mapping or service declaration."""

    kind = ErrorKind.VALIDATION


class NetworkError(SreqError):
    """Transport-level failure, including an expired resolution deadline."""

    kind = ErrorKind.NETWORK


class EncryptionError(SreqError):
    """Cache key is missing or invalid, or an encrypt/decrypt step failed."""

    kind = ErrorKind.ENCRYPTION


# =============================================================================
# Configuration errors
# =============================================================================


def config_not_found(path: str) -> ConfigError:
    return ConfigError(
        f"Configuration file not found: {path}",
        suggestion="Run 'sreq init' to create the default configuration.",
    )


def config_parse_error(path: str, cause: BaseException) -> ConfigError:
    return ConfigError(
        f"Failed to parse configuration file: {path}",
        cause=cause,
        suggestion="Check the YAML syntax in your config file. Use a YAML validator if needed.",
    )


def consul_address_required() -> ConfigError:
    return ConfigError(
        "Consul address is required",
        suggestion="Set providers.consul.address (or env_addresses) in ~/.sreq/config.yaml",
    )


# =============================================================================
# Lookup errors
# =============================================================================


def service_not_found(service: str) -> NotFoundError:
    return NotFoundError(
        f"Service '{service}' not found in configuration",
        suggestion=f"Add the service to services.yaml, e.g. '{service}: {{consul_key: <key>}}'",
    )


def context_not_found(context: str) -> NotFoundError:
    return NotFoundError(
        f"Context '{context}' not found in configuration",
        suggestion="Check available contexts in ~/.sreq/config.yaml under the 'contexts' section.",
    )


def secret_not_found(provider: str, key: str, cause: BaseException | None = None) -> NotFoundError:
    return NotFoundError(
        f"Secret '{key}' not found in {provider}",
        cause=cause,
        suggestion=(
            "Check that:\n"
            "  1. The secret path is correct\n"
            "  2. You have permission to access the secret\n"
            "  3. The secret exists in the specified environment"
        ),
    )


def json_key_not_found(key: str, source: str) -> NotFoundError:
    return NotFoundError(
        f"JSON key '{key}' not found in secret",
        suggestion=f"Verify the secret at '{source}' contains a '{key}' field.",
    )


# =============================================================================
# Provider errors
# =============================================================================


def provider_not_configured(provider: str) -> ProviderError:
    return ProviderError(
        f"Provider '{provider}' is not configured",
        suggestion=f"Add a '{provider}' entry under 'providers' in ~/.sreq/config.yaml.",
    )


def provider_init_failed(provider: str, cause: BaseException) -> ProviderError:
    return ProviderError(
        f"Failed to initialize {provider} provider",
        cause=cause,
        suggestion=f"Check your {provider} provider configuration in ~/.sreq/config.yaml",
    )


def path_resolution_failed(field: str, cause: BaseException) -> PathResolutionFailed:
    return PathResolutionFailed(
        f"Failed to resolve path '{field}'",
        field=field,
        cause=cause,
        suggestion="Check the path template and ensure the provider is configured correctly",
    )


# =============================================================================
# Validation errors
# =============================================================================


def invalid_path_mapping(mapping: str) -> ValidationError:
    return ValidationError(
        f"Invalid path mapping: {mapping}",
        suggestion="Use format: key=value (e.g., base_url=services/auth/url)",
    )


def service_mode_mixed() -> ValidationError:
    return ValidationError(
        "Cannot mix simple mode and advanced mode settings",
        suggestion="Use either simple mode (consul_key, aws_prefix) or advanced mode (paths), not both",
    )


def service_mode_required() -> ValidationError:
    return ValidationError(
        "No service configuration provided",
        suggestion="Specify either simple mode (consul_key, aws_prefix) or advanced mode (paths)",
    )


def base_url_missing(service: str, env: str) -> ValidationError:
    return ValidationError(
        f"Could not resolve base_url for service '{service}' in environment '{env}'",
        suggestion="Ensure the service has a base_url configured in Consul or the service config.",
    )


# =============================================================================
# Network errors
# =============================================================================


def request_failed(target: str, cause: BaseException) -> NetworkError:
    return NetworkError(
        f"Request failed: {target}",
        cause=cause,
        suggestion=(
            "Check that:\n"
            "  1. The backend address is correct and accessible\n"
            "  2. Your network connection is working\n"
            "  3. Any required VPN is connected"
        ),
    )


def deadline_exceeded(operation: str, timeout: float) -> NetworkError:
    return NetworkError(
        f"{operation} timed out after {timeout:g}s",
        suggestion="Increase the timeout or check backend connectivity.",
    )


# =============================================================================
# Cache errors
# =============================================================================


def encryption_key_not_found(path: str) -> EncryptionError:
    return EncryptionError(
        f"Encryption key not found: {path}",
        suggestion="Run 'sreq init' to create it.",
    )
