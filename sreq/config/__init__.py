"""Configuration system for sreq.

This package provides type-safe configuration management using Pydantic.

Key Components:
    - SreqConfig: Main configuration container with YAML loading support
    - ProviderConfig: Per-backend settings and simple-mode path templates
    - ServiceConfig: Per-service simple-mode prefixes or advanced-mode paths
    - ContextConfig: Named presets for resolution variables
    - RuntimeSettings: SREQ_* environment driven process settings

Example:
    >>> from sreq.config import SreqConfig
    >>> config = SreqConfig.load()
    >>> config.services["billing"].is_advanced_mode
"""

from sreq.config.settings import (
    ContextConfig,
    ProviderConfig,
    RuntimeSettings,
    ServiceConfig,
    SreqConfig,
    init_config_dir,
)

__all__ = [
    "ContextConfig",
    "ProviderConfig",
    "RuntimeSettings",
    "ServiceConfig",
    "SreqConfig",
    "init_config_dir",
]
