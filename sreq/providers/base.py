"""Provider protocol shared by every secret backend."""

import os
import re
from collections.abc import Mapping
from typing import Protocol

from sreq.paths import resolve_path

TOKEN_REFERENCE = re.compile(r"^\$\{([^}]+)\}$")


class Provider(Protocol):
    """Protocol defining the interface for secret backends.

    All backends must implement these members to be usable by the
    CredentialResolver.
    """

    @property
    def name(self) -> str:
        """Backend identifier (e.g., 'consul', 'env')."""
        ...

    def get(self, key: str) -> str:
        """Retrieve one value.

        Args:
            key: Backend-specific key or path

        Returns:
            The stored value

        Raises:
            NotFoundError: If the key does not exist
            ProviderError: If the backend rejects the request
            NetworkError: If the backend cannot be reached
        """
        ...

    def get_multiple(self, keys: list[str]) -> dict[str, str]:
        """Retrieve several values, failing on the first missing key."""
        ...

    def health(self) -> None:
        """Check backend reachability.

        Raises:
            SreqError: If the backend is not healthy
        """
        ...

    def resolve_template(self, template: str, variables: Mapping[str, str]) -> str:
        """Substitute placeholders using this backend's identifier rules."""
        ...


class BaseProvider:
    """Shared behaviour for concrete providers."""

    name = "base"

    def get(self, key: str) -> str:
        raise NotImplementedError

    def get_multiple(self, keys: list[str]) -> dict[str, str]:
        return {key: self.get(key) for key in keys}

    def resolve_template(self, template: str, variables: Mapping[str, str]) -> str:
        return resolve_path(template, variables)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def resolve_token(token: str | None) -> str:
    """Resolve a ``${VAR_NAME}`` token reference from the process environment.

    Any other value is returned as-is. An unset variable yields an empty string.
    """
    if not token:
        return ""
    match = TOKEN_REFERENCE.match(token)
    if match:
        return os.getenv(match.group(1), "")
    return token
