"""Environment variable provider for CI/CD and containerized environments."""

import os
from collections.abc import Mapping

import structlog

from sreq.exceptions import NotFoundError
from sreq.paths import resolve_env_path
from sreq.providers.base import BaseProvider

log = structlog.get_logger(__name__)


class EnvironmentProvider(BaseProvider):
    """Environment variable backend.

    Keys are upper-cased before lookup, and an optional prefix is prepended
    when the key does not already carry it. Templates are resolved with
    identifier folding, so ``{SERVICE}_API_KEY`` for service ``auth-svc``
    becomes ``AUTH_SVC_API_KEY``.

    Example:
        >>> import os
        >>> os.environ['SREQ_AUTH_API_KEY'] = 'abc123'
        >>> EnvironmentProvider(prefix="SREQ_").get("auth_api_key")
        'abc123'
    """

    name = "env"

    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = prefix or ""

    def _env_key(self, key: str) -> str:
        env_key = key
        if self.prefix and not key.upper().startswith(self.prefix.upper()):
            env_key = self.prefix + key
        return env_key.upper()

    def get(self, key: str) -> str:
        """Retrieve a value from the process environment.

        Raises:
            NotFoundError: If the variable is unset or empty
        """
        env_key = self._env_key(key)
        value = os.getenv(env_key)
        if not value:
            raise NotFoundError(
                f"Environment variable '{env_key}' not set",
                suggestion=f"Set the environment variable:\n  export {env_key}='your-credential-here'",
            )

        log.debug("env_get", variable=env_key)
        return value

    def health(self) -> None:
        """Environment variables are always available."""
        return None

    def resolve_template(self, template: str, variables: Mapping[str, str]) -> str:
        return resolve_env_path(template, variables)
