"""Consul KV provider using the Consul HTTP API."""

from __future__ import annotations

import base64
import binascii

import httpx
import structlog

from sreq.exceptions import (
    ProviderError,
    consul_address_required,
    request_failed,
    secret_not_found,
)
from sreq.providers.base import BaseProvider, resolve_token

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class ConsulProvider(BaseProvider):
    """Consul KV backend.

    A default address and optional per-environment address overrides are
    supported; one ``httpx.Client`` is kept per address. ``for_env`` returns a
    view of the provider bound to one environment's address.

    Example:
        >>> provider = ConsulProvider(
        ...     address="consul-nonprod:8500",
        ...     env_addresses={"prod": "consul-prod:8500"},
        ... )
        >>> provider.for_env("prod").get("services/auth/config/base_url")
    """

    name = "consul"

    def __init__(
        self,
        address: str | None = None,
        token: str | None = None,
        datacenter: str | None = None,
        env_addresses: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        env: str | None = None,
        clients: dict[str, httpx.Client] | None = None,
    ) -> None:
        """Initialize Consul provider.

        Args:
            address: Default Consul address (``host:port`` or URL)
            token: ACL token, or a ``${VAR}`` reference to one
            datacenter: Datacenter passed with every KV query
            env_addresses: Environment name -> address overrides
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used for testing)
            env: Environment this view is bound to
            clients: Client cache shared between views

        Raises:
            ConfigError: If neither a default nor any per-environment address is set
        """
        env_addresses = {k: v for k, v in (env_addresses or {}).items() if v}
        if not address and not env_addresses:
            raise consul_address_required()

        self.default_address = address or ""
        self.env_addresses = env_addresses
        self.token = resolve_token(token)
        self.datacenter = datacenter or ""
        self.timeout = timeout
        self.env = env or ""
        self._transport = transport
        self._clients: dict[str, httpx.Client] = clients if clients is not None else {}

    def for_env(self, env: str | None) -> ConsulProvider:
        """Return a view of this provider bound to ``env``'s address."""
        return ConsulProvider(
            address=self.default_address or None,
            token=self.token,
            datacenter=self.datacenter,
            env_addresses=self.env_addresses,
            timeout=self.timeout,
            transport=self._transport,
            env=env,
            clients=self._clients,
        )

    def address_for_env(self, env: str | None) -> str:
        """Return the address for ``env``, falling back to the default address."""
        if env and env in self.env_addresses:
            return self.env_addresses[env]
        return self.default_address

    def addresses(self) -> dict[str, str]:
        """Return all configured addresses keyed by environment (``default`` for the fallback)."""
        result: dict[str, str] = {}
        if self.default_address:
            result["default"] = self.default_address
        result.update(self.env_addresses)
        return result

    def _client(self) -> httpx.Client:
        address = self.address_for_env(self.env)
        if not address:
            raise consul_address_required()

        client = self._clients.get(address)
        if client is None:
            base_url = address if "://" in address else f"http://{address}"
            headers = {"X-Consul-Token": self.token} if self.token else {}
            client = httpx.Client(
                base_url=base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
            self._clients[address] = client
            log.debug("consul_client_created", address=address)
        return client

    def _query_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.datacenter:
            params["dc"] = self.datacenter
        return params

    def _request(self, path: str, params: dict[str, str]) -> httpx.Response:
        client = self._client()
        try:
            return client.get(path, params=params)
        except httpx.HTTPError as e:
            raise request_failed(f"consul {client.base_url}{path}", e) from e

    def get(self, key: str) -> str:
        """Retrieve a value from Consul KV.

        Raises:
            NotFoundError: If the key does not exist
            ProviderError: If Consul rejects the request
            NetworkError: If Consul cannot be reached
        """
        response = self._request(f"/v1/kv/{key.lstrip('/')}", self._query_params())

        if response.status_code == 404:
            raise secret_not_found("consul", key)
        if response.status_code != 200:
            raise ProviderError(
                f"Failed to get key '{key}' from Consul (HTTP {response.status_code})",
                suggestion="Check that Consul is accessible and the token has read access",
            )

        try:
            entries = response.json()
            raw = entries[0].get("Value")
        except (ValueError, LookupError, AttributeError) as e:
            raise ProviderError(f"Unexpected Consul response for key '{key}'", cause=e) from e

        if raw is None:
            return ""
        try:
            value = base64.b64decode(raw).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ProviderError(f"Consul value for key '{key}' is not valid UTF-8 text", cause=e) from e

        log.debug("consul_get", key=key, env=self.env or None)
        return value

    def list_keys(self, prefix: str) -> list[str]:
        """List all keys under ``prefix``."""
        params = {**self._query_params(), "keys": ""}
        response = self._request(f"/v1/kv/{prefix.lstrip('/')}", params)

        if response.status_code == 404:
            return []
        if response.status_code != 200:
            raise ProviderError(
                f"Failed to list keys with prefix '{prefix}' (HTTP {response.status_code})"
            )
        return list(response.json())

    def health(self) -> None:
        """Check that every configured Consul cluster has a leader."""
        for env_name in self.addresses():
            view = self.for_env(None if env_name == "default" else env_name)
            view._check_leader()

    def _check_leader(self) -> None:
        response = self._request("/v1/status/leader", {})
        if response.status_code != 200 or not response.text.strip().strip('"'):
            raise ProviderError(
                f"Consul health check failed for {self.address_for_env(self.env)} "
                f"(HTTP {response.status_code})",
                suggestion=(
                    "Check that:\n"
                    "  1. Consul is running and accessible\n"
                    "  2. The address is correct\n"
                    "  3. The token is set (if required)"
                ),
            )

    def close(self) -> None:
        """Close every cached HTTP client."""
        for client in self._clients.values():
            client.close()
        self._clients.clear()

