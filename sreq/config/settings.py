"""
Configuration system using Pydantic for type-safe settings management.

This module provides the configuration structures consumed by the resolver
and the credential cache: per-backend provider settings, per-service path
declarations, named resolution contexts, and process-level runtime settings.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from sreq.cache.encryption import ensure_key, key_path
from sreq.exceptions import (
    ConfigError,
    config_not_found,
    config_parse_error,
    context_not_found,
    service_mode_mixed,
    service_mode_required,
)
from sreq.paths import parse_path_mappings

log = structlog.get_logger(__name__)

DEFAULT_CONFIG_DIR = Path("~/.sreq")
DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_SERVICES_FILE = "services.yaml"


class ProviderConfig(BaseModel):
    """Settings for one secret backend.

    Which fields matter depends on the backend:
    - consul: address, env_addresses, token, datacenter
    - aws / aws_secrets: region, profile
    - env: prefix
    - dotenv: file, files

    ``paths`` maps credential field names to the path templates used in
    simple mode (e.g. ``base_url: "services/{service}/config/base_url"``).
    """

    type: str | None = Field(default=None, description="Backend type (defaults to the provider name)")
    address: str | None = Field(default=None, description="Default backend address")
    env_addresses: dict[str, str] = Field(
        default_factory=dict, description="Per-environment address overrides"
    )
    token: str | None = Field(default=None, description="Access token (supports ${VAR})")
    region: str | None = Field(default=None, description="Cloud region")
    profile: str | None = Field(default=None, description="Named cloud credentials profile")
    datacenter: str | None = Field(default=None, description="Consul datacenter")
    prefix: str | None = Field(default=None, description="Prefix prepended to environment variable names")
    file: str | None = Field(default=None, description="Single dotenv file")
    files: list[str] = Field(default_factory=list, description="Dotenv files, later files override earlier")
    paths: dict[str, str] = Field(default_factory=dict, description="Simple-mode field -> path template map")


class ServiceConfig(BaseModel):
    """Declaration of one logical service.

    Simple mode:
        services:
          auth-service:
            consul_key: auth
            aws_prefix: auth-service

    Advanced mode:
        services:
          invoice:
            paths:
              base_url: "billing_service/invoice_svc_url"
              password: "aws:billing/{env}/invoice#password"
    """

    name: str | None = Field(default=None, description="Service name")
    consul_key: str | None = Field(default=None, description="Simple mode: Consul key prefix")
    aws_prefix: str | None = Field(default=None, description="Simple mode: AWS secret prefix")
    paths: dict[str, str] = Field(default_factory=dict, description="Advanced mode: field -> path spec")

    @property
    def is_advanced_mode(self) -> bool:
        """True when the service declares explicit path mappings."""
        return len(self.paths) > 0

    @property
    def has_simple_prefixes(self) -> bool:
        """True when any simple-mode prefix is set."""
        return bool(self.consul_key or self.aws_prefix)

    @classmethod
    def from_flags(
        cls,
        name: str,
        consul_key: str | None = None,
        aws_prefix: str | None = None,
        path_mappings: list[str] | tuple[str, ...] = (),
    ) -> ServiceConfig:
        """Build a service declaration from command-style inputs.

        Args:
            name: Service name
            consul_key: Simple-mode Consul key prefix
            aws_prefix: Simple-mode AWS secret prefix
            path_mappings: Advanced-mode ``field=path-spec`` pairs

        Returns:
            Validated ServiceConfig

        Raises:
            ValidationError: If modes are mixed, no mode is given, or a mapping is malformed
        """
        simple = bool(consul_key or aws_prefix)
        advanced = len(path_mappings) > 0
        if simple and advanced:
            raise service_mode_mixed()
        if not simple and not advanced:
            raise service_mode_required()

        return cls(
            name=name,
            consul_key=consul_key or None,
            aws_prefix=aws_prefix or None,
            paths=parse_path_mappings(path_mappings),
        )


class ContextConfig(BaseModel):
    """Named preset for resolution variables (project, env, region, app)."""

    project: str | None = None
    env: str | None = None
    region: str | None = None
    app: str | None = None


class SreqConfig(BaseModel):
    """Main sreq configuration.

    Combines provider settings, declared services and resolution contexts,
    and provides YAML loading with a sibling ``services.yaml`` merge.
    """

    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    environments: list[str] = Field(default_factory=list)
    default_env: str | None = None
    services: dict[str, ServiceConfig] = Field(default_factory=dict)
    contexts: dict[str, ContextConfig] = Field(default_factory=dict)
    default_context: str | None = None

    def get_service(self, name: str) -> ServiceConfig | None:
        return self.services.get(name)

    def get_context(self, name: str) -> ContextConfig:
        """Return the named context.

        Raises:
            NotFoundError: If the context is not declared
        """
        try:
            return self.contexts[name]
        except KeyError:
            raise context_not_found(name) from None

    @classmethod
    def load(cls, config_dir: Path | None = None) -> SreqConfig:
        """Load configuration from ``$SREQ_CONFIG`` or ``<config_dir>/config.yaml``.

        ``config_dir`` defaults to ``~/.sreq``.
        """
        config_path = os.getenv("SREQ_CONFIG")
        if not config_path:
            root = config_dir if config_dir is not None else DEFAULT_CONFIG_DIR
            config_path = str(root.expanduser() / DEFAULT_CONFIG_FILE)
        return cls.from_yaml(config_path)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> SreqConfig:
        """Load configuration from a YAML file.

        Services declared in ``services.yaml`` next to the config file are
        merged in and take precedence over services of the same name.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SreqConfig instance

        Raises:
            ConfigError: If a file is missing, unreadable or invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise config_not_found(str(config_path))

        data = _read_yaml_mapping(config_file)

        services_file = config_file.parent / DEFAULT_SERVICES_FILE
        if services_file.exists():
            services_data = _read_yaml_mapping(services_file)
            merged = dict(data.get("services") or {})
            for name, service in (services_data.get("services") or {}).items():
                merged[name] = service
            data["services"] = merged

        try:
            config = cls(**data)
        except PydanticValidationError as e:
            raise config_parse_error(str(config_path), e) from e

        for name, service in config.services.items():
            if service.name is None:
                service.name = name

        log.debug(
            "config_loaded",
            path=str(config_file),
            providers=sorted(config.providers),
            services=len(config.services),
        )
        return config


def _read_yaml_mapping(path: Path) -> dict:
    """Read a YAML file that must contain a mapping (an empty file is an empty mapping)."""
    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file: {path}", cause=e) from e
    except yaml.YAMLError as e:
        raise config_parse_error(str(path), e) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(
            f"Configuration must be a YAML mapping, not a list or scalar: {path}",
            suggestion="Check the top-level structure of the file.",
        )
    return content


class RuntimeSettings(BaseSettings):
    """Process-level settings read from ``SREQ_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SREQ_",
        case_sensitive=False,
    )

    config_dir: Path = Field(default=DEFAULT_CONFIG_DIR, description="Configuration root directory")
    no_cache: bool = Field(default=False, description="Bypass the credential cache")
    cache_ttl: int = Field(default=3600, ge=0, description="Cache time-to-live in seconds")
    timeout: float = Field(default=30.0, gt=0, description="Overall resolution deadline in seconds")

    @property
    def resolved_config_dir(self) -> Path:
        return self.config_dir.expanduser()


DEFAULT_CONFIG = """\
# sreq configuration

providers:
  consul:
    address: localhost:8500
    # token: ${CONSUL_TOKEN}
    # env_addresses:
    #   prod: consul-prod.internal:8500
    paths:
      base_url: "services/{service}/config/base_url"
      username: "services/{service}/config/username"

  aws_secrets:
    region: us-east-1
    # profile: default
    paths:
      password: "{service}/{env}/credentials#password"
      api_key: "{service}/{env}/credentials#api_key"

environments:
  - dev
  - staging
  - prod

default_env: dev
"""

DEFAULT_SERVICES = """\
# sreq services configuration

services:
  # Simple mode: path templates come from the provider configuration.
  #
  # example-service:
  #   consul_key: example           # services/{consul_key}/config/*
  #   aws_prefix: example-service   # {aws_prefix}/{env}/credentials
  #
  # Advanced mode: explicit per-field path specifications.
  #
  # invoice:
  #   paths:
  #     base_url: "billing_service/invoice_svc_url"
  #     username: "billing_service/invoice_svc_username"
  #     password: "aws:billing/{env}/invoice#password"
  #
  # Path format: [provider:]path[#jsonkey]
"""


def init_config_dir(config_dir: Path) -> list[Path]:
    """Create default configuration files and the cache key if they do not exist yet.

    Args:
        config_dir: Configuration root directory

    Returns:
        Paths of the files that were created
    """
    config_dir.mkdir(parents=True, exist_ok=True)
    created: list[Path] = []
    for filename, content in (
        (DEFAULT_CONFIG_FILE, DEFAULT_CONFIG),
        (DEFAULT_SERVICES_FILE, DEFAULT_SERVICES),
    ):
        path = config_dir / filename
        if not path.exists():
            path.write_text(content)
            created.append(path)
            log.info("config_file_created", path=str(path))
    if ensure_key(config_dir):
        created.append(key_path(config_dir))
    return created
