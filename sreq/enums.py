"""Enumerations for sreq credential fields, backends and error kinds."""

from enum import Enum


class CredentialField(str, Enum):
    """Well-known credential fields a path template can populate.

    Any other field name is stored in ``ResolvedCredentials.custom``.
    """

    BASE_URL = "base_url"
    USERNAME = "username"
    PASSWORD = "password"
    API_KEY = "api_key"

    def __str__(self) -> str:
        return self.value


class BackendName(str, Enum):
    """Names under which secret backends are registered.

    ``AWS`` and ``AWS_SECRETS`` are aliases for the same backend.
    """

    CONSUL = "consul"
    AWS = "aws"
    AWS_SECRETS = "aws_secrets"
    ENV = "env"
    DOTENV = "dotenv"

    def __str__(self) -> str:
        return self.value


class ErrorKind(str, Enum):
    """Categories callers branch on when handling sreq errors."""

    CONFIG = "config"
    NOT_FOUND = "not_found"
    PROVIDER = "provider"
    VALIDATION = "validation"
    NETWORK = "network"
    ENCRYPTION = "encryption"

    def __str__(self) -> str:
        return self.value
