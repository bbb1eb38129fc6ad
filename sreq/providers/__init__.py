"""Secret backends for credential resolution.

Available providers:
- ConsulProvider: Consul KV over the HTTP API
- AWSSecretsProvider: AWS Secrets Manager
- EnvironmentProvider: process environment variables
- DotenvProvider: local ``.env`` files
"""

from sreq.providers.aws_secrets import AWSSecretsProvider
from sreq.providers.base import BaseProvider, Provider, resolve_token
from sreq.providers.consul import ConsulProvider
from sreq.providers.dotenv_files import DotenvProvider
from sreq.providers.environment import EnvironmentProvider
from sreq.providers.factory import build_providers, create_provider

__all__ = [
    "AWSSecretsProvider",
    "BaseProvider",
    "ConsulProvider",
    "DotenvProvider",
    "EnvironmentProvider",
    "Provider",
    "build_providers",
    "create_provider",
    "resolve_token",
]
