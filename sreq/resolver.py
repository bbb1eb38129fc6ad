"""Credential resolution across configured secret backends.

The resolver turns a service name plus resolution variables (env, region,
project, app) into ``ResolvedCredentials``. Services use one of two modes:

- Simple mode: per-backend prefixes combined with each backend's configured
  field -> path template map. Backends that lack a field are skipped.
- Advanced mode: an explicit field -> ``[backend:]path[#json-key]`` map on the
  service. Any failing field aborts the whole resolution.

Example:
    >>> config = SreqConfig.load()
    >>> resolver = CredentialResolver(config)
    >>> creds = resolver.resolve(ResolveOptions(service="billing", env="prod"))
"""

from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError, wait
from dataclasses import dataclass

import structlog

from sreq.config.settings import ContextConfig, ProviderConfig, ServiceConfig, SreqConfig
from sreq.enums import BackendName, CredentialField
from sreq.exceptions import (
    SreqError,
    deadline_exceeded,
    path_resolution_failed,
    provider_not_configured,
    service_not_found,
)
from sreq.models.domain import ResolvedCredentials
from sreq.paths import extract_json_key, parse_path_spec, resolve_path
from sreq.providers.base import Provider
from sreq.providers.consul import ConsulProvider
from sreq.providers.factory import build_providers

log = structlog.get_logger(__name__)

DEFAULT_BACKEND = BackendName.CONSUL

# Fields whose first resolved value is kept; later backends only fill gaps.
IDENTITY_FIELDS = frozenset({CredentialField.BASE_URL.value, CredentialField.USERNAME.value})


@dataclass
class ResolveOptions:
    """Inputs for one resolution call.

    Attributes:
        service: Service name declared in the configuration
        env: Environment name (``dev``, ``prod``, ...)
        region: Optional region substituted for ``{region}``
        project: Optional project substituted for ``{project}``
        app: Optional application substituted for ``{app}``
        timeout: Overall deadline in seconds, or None for no deadline
    """

    service: str
    env: str
    region: str | None = None
    project: str | None = None
    app: str | None = None
    timeout: float | None = None

    @classmethod
    def from_context(
        cls,
        service: str,
        context: ContextConfig,
        env: str | None = None,
        region: str | None = None,
        project: str | None = None,
        app: str | None = None,
        timeout: float | None = None,
    ) -> ResolveOptions:
        """Build options where explicit values override the named context's presets."""
        return cls(
            service=service,
            env=env or context.env or "",
            region=region or context.region,
            project=project or context.project,
            app=app or context.app,
            timeout=timeout,
        )

    def variables(self) -> dict[str, str]:
        """Return the template variables that were actually provided."""
        candidates = {
            "service": self.service,
            "env": self.env,
            "region": self.region,
            "project": self.project,
            "app": self.app,
        }
        return {name: value for name, value in candidates.items() if value}


class CredentialResolver:
    """Resolve service credentials from the configured backends.

    The provider table is built once from ``config.providers``. Pass
    ``providers`` to supply the table directly instead.
    """

    # Simple-mode backend families in resolution order: (provider, prefix attribute).
    SIMPLE_MODE_ORDER = (
        (BackendName.CONSUL.value, "consul_key"),
        (BackendName.AWS.value, "aws_prefix"),
    )

    def __init__(
        self,
        config: SreqConfig,
        providers: Mapping[str, Provider] | None = None,
    ) -> None:
        """Initialize resolver.

        Args:
            config: Loaded sreq configuration
            providers: Optional name -> provider table replacing the factory

        Raises:
            ProviderError: If a configured backend cannot be constructed
        """
        self.config = config
        if providers is None:
            self._providers: dict[str, Provider] = build_providers(config.providers)
        else:
            self._providers = dict(providers)

        log.debug("resolver_initialized", providers=sorted(self._providers))

    @property
    def providers(self) -> dict[str, Provider]:
        """Initialized providers keyed by registered name."""
        return dict(self._providers)

    def provider(self, name: str) -> Provider | None:
        """Return the provider registered under ``name``, if any."""
        return self._providers.get(name)

    def resolve(self, options: ResolveOptions) -> ResolvedCredentials:
        """Resolve credentials for one service in one environment.

        When ``options.timeout`` passes, the caller gets ``NetworkError`` at
        once but the in-flight backend call keeps running on its worker
        thread. ``concurrent.futures`` joins that thread at interpreter exit,
        so a short-lived process may still wait up to the backend's own
        request timeout (10s for Consul and AWS by default) before exiting.

        Args:
            options: Service, variables and optional deadline

        Returns:
            Freshly built credentials

        Raises:
            NotFoundError: If the service is not declared
            PathResolutionFailed: If an advanced-mode field cannot be resolved
            NetworkError: If the deadline passes before resolution finishes
        """
        if options.timeout is None:
            return self._resolve(options)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sreq-resolve")
        try:
            future = executor.submit(self._resolve, options)
            try:
                return future.result(timeout=options.timeout)
            except FuturesTimeoutError:
                log.warning(
                    "resolution_deadline_exceeded",
                    service=options.service,
                    env=options.env,
                    timeout=options.timeout,
                )
                raise deadline_exceeded(
                    f"Resolving credentials for '{options.service}'", options.timeout
                ) from None
        finally:
            # Never block on an abandoned backend call.
            executor.shutdown(wait=False)

    def _resolve(self, options: ResolveOptions) -> ResolvedCredentials:
        service = self.config.get_service(options.service)
        if service is None:
            raise service_not_found(options.service)

        providers = self._bind_providers(options.env)
        variables = options.variables()

        if service.is_advanced_mode:
            if service.has_simple_prefixes:
                log.warning("service_mode_overlap", service=options.service, used="advanced")
            mode = "advanced"
            values = self._resolve_advanced(service, variables, providers)
        else:
            mode = "simple"
            values = self._resolve_simple(service, variables, providers)

        credentials = build_credentials(values)
        log.info(
            "credentials_resolved",
            service=options.service,
            env=options.env,
            mode=mode,
            fields=sorted(values),
        )
        return credentials

    def _bind_providers(self, env: str) -> dict[str, Provider]:
        """Bind environment-aware providers to ``env``, keeping aliases shared."""
        bound_by_id: dict[int, Provider] = {}
        bound: dict[str, Provider] = {}
        for name, provider in self._providers.items():
            key = id(provider)
            if key not in bound_by_id:
                if isinstance(provider, ConsulProvider):
                    bound_by_id[key] = provider.for_env(env or None)
                else:
                    bound_by_id[key] = provider
            bound[name] = bound_by_id[key]
        return bound

    def _resolve_advanced(
        self,
        service: ServiceConfig,
        variables: dict[str, str],
        providers: Mapping[str, Provider],
    ) -> dict[str, str]:
        values: dict[str, str] = {}
        for field in sorted(service.paths):
            spec = parse_path_spec(service.paths[field])
            backend = spec.backend or DEFAULT_BACKEND.value
            try:
                provider = providers.get(backend)
                if provider is None:
                    raise provider_not_configured(backend)

                path = resolve_path(spec.path, variables)
                value = provider.get(path)
                if spec.json_key:
                    value = extract_json_key(value, spec.json_key)
            except SreqError as e:
                log.debug("advanced_field_failed", field=field, backend=backend, error=e.message)
                raise path_resolution_failed(field, e) from e

            values[field] = value
        return values

    def _resolve_simple(
        self,
        service: ServiceConfig,
        variables: dict[str, str],
        providers: Mapping[str, Provider],
    ) -> dict[str, str]:
        values: dict[str, str] = {}
        for backend, prefix_attr in self.SIMPLE_MODE_ORDER:
            prefix = getattr(service, prefix_attr)
            if not prefix:
                continue

            provider = providers.get(backend)
            if provider is None:
                log.debug("simple_backend_skipped", backend=backend, reason="not configured")
                continue

            templates = self._simple_templates(backend)
            backend_vars = {**variables, "service": prefix}
            for field in sorted(templates):
                if field in IDENTITY_FIELDS and field in values:
                    continue

                path = provider.resolve_template(templates[field], backend_vars)
                try:
                    values[field] = provider.get(path)
                except SreqError as e:
                    log.debug(
                        "simple_field_skipped",
                        backend=backend,
                        field=field,
                        path=path,
                        error=e.message,
                    )
        return values

    def _simple_templates(self, backend: str) -> dict[str, str]:
        """Return the configured field -> template map for a simple-mode backend."""
        provider_config: ProviderConfig | None
        if backend == BackendName.AWS.value:
            provider_config = self.config.providers.get(BackendName.AWS_SECRETS.value)
            if provider_config is None or not provider_config.paths:
                provider_config = self.config.providers.get(BackendName.AWS.value)
        else:
            provider_config = self.config.providers.get(backend)
        return dict(provider_config.paths) if provider_config else {}

    def health_check(self, timeout: float | None = None) -> dict[str, BaseException | None]:
        """Check every initialized provider concurrently.

        Aliases sharing one instance are checked once and reported under
        each registered name. A failing or slow backend never hides the
        results of the others.

        Args:
            timeout: Deadline for the whole sweep in seconds

        Returns:
            Provider name -> None when healthy, else the raised exception
        """
        names_by_instance: dict[int, list[str]] = {}
        instances: dict[int, Provider] = {}
        for name, provider in self._providers.items():
            names_by_instance.setdefault(id(provider), []).append(name)
            instances[id(provider)] = provider

        results: dict[str, BaseException | None] = {}
        if not instances:
            return results

        executor = ThreadPoolExecutor(max_workers=len(instances), thread_name_prefix="sreq-health")
        try:
            futures = {executor.submit(provider.health): key for key, provider in instances.items()}
            done, _ = wait(futures, timeout=timeout)

            for future, key in futures.items():
                if future in done:
                    outcome = future.exception()
                else:
                    outcome = deadline_exceeded(
                        f"Health check for {instances[key].name}", timeout or 0.0
                    )
                for name in names_by_instance[key]:
                    results[name] = outcome
        finally:
            executor.shutdown(wait=False)

        log.info(
            "health_check_complete",
            healthy=sorted(name for name, error in results.items() if error is None),
            unhealthy=sorted(name for name, error in results.items() if error is not None),
        )
        return dict(sorted(results.items()))


def build_credentials(values: Mapping[str, str]) -> ResolvedCredentials:
    """Assemble credentials from field -> value pairs.

    Well-known fields populate the matching attribute; anything else goes to
    ``custom``.
    """
    known = {field.value for field in CredentialField}
    fields = {name: value for name, value in values.items() if name in known}
    custom = {name: value for name, value in values.items() if name not in known}
    return ResolvedCredentials(**fields, custom=custom)
