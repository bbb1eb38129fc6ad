"""AWS Secrets Manager provider."""

import os
from typing import Any

import boto3
import structlog
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from sreq.exceptions import (
    NetworkError,
    NotFoundError,
    ProviderError,
    json_key_not_found,
    request_failed,
    secret_not_found,
)
from sreq.paths import extract_json_key
from sreq.providers.base import BaseProvider

log = structlog.get_logger(__name__)

DEFAULT_REGION = "us-east-1"
NOT_FOUND_CODES = frozenset({"ResourceNotFoundException"})
TRANSPORT_ERRORS = (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)


class AWSSecretsProvider(BaseProvider):
    """AWS Secrets Manager backend.

    Keys are secret names, optionally suffixed with ``#json-key`` to extract
    one field from a JSON secret string.

    Example:
        >>> provider = AWSSecretsProvider(region="eu-west-1")
        >>> provider.get("billing/prod/invoice#password")
    """

    name = "aws_secrets"

    def __init__(
        self,
        region: str | None = None,
        profile: str | None = None,
        timeout: float = 10.0,
        client: Any | None = None,
    ) -> None:
        """Initialize AWS Secrets Manager provider.

        Args:
            region: AWS region (falls back to ``AWS_REGION``, then us-east-1)
            profile: Named profile from the shared AWS config
            timeout: Connect/read timeout in seconds
            client: Pre-built secretsmanager client (used for testing)
        """
        self.region = region or os.getenv("AWS_REGION") or DEFAULT_REGION
        self.profile = profile or None
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> Any:
        """Lazily created boto3 secretsmanager client."""
        if self._client is None:
            session = boto3.Session(profile_name=self.profile, region_name=self.region)
            self._client = session.client(
                "secretsmanager",
                config=BotoConfig(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    retries={"max_attempts": 1},
                ),
            )
            log.debug("aws_client_created", region=self.region, profile=self.profile)
        return self._client

    def get(self, key: str) -> str:
        """Retrieve a secret string, optionally extracting a JSON field.

        Raises:
            NotFoundError: If the secret or JSON field does not exist
            ProviderError: If AWS rejects the request or the secret is binary
            NetworkError: If AWS cannot be reached
        """
        secret_name, json_key = key, ""
        if "#" in key:
            secret_name, _, json_key = key.rpartition("#")

        try:
            response = self.client.get_secret_value(SecretId=secret_name)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in NOT_FOUND_CODES:
                raise secret_not_found("aws_secrets", secret_name, cause=e) from e
            raise ProviderError(
                f"Failed to get secret '{secret_name}'",
                cause=e,
                suggestion=(
                    "Check that:\n"
                    "  1. AWS credentials are configured (~/.aws/credentials or env vars)\n"
                    "  2. The IAM user/role has secretsmanager:GetSecretValue permission\n"
                    f"  3. The region is correct (currently {self.region})"
                ),
            ) from e
        except TRANSPORT_ERRORS as e:
            raise request_failed(f"aws secretsmanager ({self.region})", e) from e
        except BotoCoreError as e:
            raise ProviderError(f"Failed to get secret '{secret_name}'", cause=e) from e

        value = response.get("SecretString")
        if value is None:
            raise ProviderError(
                f"Secret '{secret_name}' has no string value (binary secrets not supported)"
            )

        log.debug("aws_get", secret=secret_name, json_key=json_key or None)
        if not json_key:
            return value
        try:
            return extract_json_key(value, json_key)
        except NotFoundError:
            raise json_key_not_found(json_key, secret_name) from None

    def health(self) -> None:
        """List at most one secret to verify connectivity and permissions."""
        try:
            self.client.list_secrets(MaxResults=1)
        except TRANSPORT_ERRORS as e:
            raise NetworkError("AWS Secrets Manager is unreachable", cause=e) from e
        except (ClientError, BotoCoreError) as e:
            raise ProviderError(
                f"AWS Secrets Manager health check failed in region {self.region}", cause=e
            ) from e
