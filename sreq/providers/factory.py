"""Factory for creating secret backend instances from configuration."""

import structlog

from sreq.config.settings import ProviderConfig
from sreq.enums import BackendName
from sreq.exceptions import SreqError, provider_init_failed
from sreq.providers.aws_secrets import AWSSecretsProvider
from sreq.providers.base import Provider
from sreq.providers.consul import ConsulProvider
from sreq.providers.dotenv_files import DotenvProvider
from sreq.providers.environment import EnvironmentProvider

log = structlog.get_logger(__name__)

# Names each backend type is registered under in the resolver's table.
REGISTRATION_NAMES: dict[BackendName, tuple[str, ...]] = {
    BackendName.CONSUL: ("consul",),
    BackendName.AWS: ("aws", "aws_secrets"),
    BackendName.AWS_SECRETS: ("aws", "aws_secrets"),
    BackendName.ENV: ("env",),
    BackendName.DOTENV: ("dotenv",),
}

DISPLAY_NAMES: dict[BackendName, str] = {
    BackendName.CONSUL: "Consul",
    BackendName.AWS: "AWS Secrets Manager",
    BackendName.AWS_SECRETS: "AWS Secrets Manager",
    BackendName.ENV: "environment",
    BackendName.DOTENV: "dotenv",
}


def backend_type(name: str, config: ProviderConfig) -> BackendName | None:
    """Return the backend type for a provider entry, or None if unknown."""
    try:
        return BackendName(config.type or name)
    except ValueError:
        return None


def create_provider(kind: BackendName, config: ProviderConfig) -> Provider:
    """Create one provider instance.

    Args:
        kind: Backend type
        config: Provider settings

    Returns:
        Provider instance

    Raises:
        ProviderError: If the backend cannot be constructed from ``config``
    """
    try:
        if kind == BackendName.CONSUL:
            return ConsulProvider(
                address=config.address,
                token=config.token,
                datacenter=config.datacenter,
                env_addresses=config.env_addresses,
            )
        if kind in (BackendName.AWS, BackendName.AWS_SECRETS):
            return AWSSecretsProvider(region=config.region, profile=config.profile)
        if kind == BackendName.ENV:
            return EnvironmentProvider(prefix=config.prefix)
        return DotenvProvider(files=config.files, file=config.file)
    except SreqError as e:
        raise provider_init_failed(DISPLAY_NAMES[kind], e) from e


def build_providers(configs: dict[str, ProviderConfig]) -> dict[str, Provider]:
    """Build the name -> provider table for every recognised provider entry.

    Unknown provider names are skipped. Aliases (``aws``/``aws_secrets``)
    share one instance.

    Returns:
        Providers keyed by registered name
    """
    providers: dict[str, Provider] = {}

    for name, config in configs.items():
        kind = backend_type(name, config)
        if kind is None:
            log.debug("provider_skipped", provider=name, reason="unknown type")
            continue

        provider = create_provider(kind, config)
        for registered in REGISTRATION_NAMES[kind]:
            # An explicitly named entry wins over an alias registered earlier.
            if registered in providers and registered != name:
                continue
            providers[registered] = provider
        log.debug("provider_initialized", provider=name, type=str(kind))

    return providers
