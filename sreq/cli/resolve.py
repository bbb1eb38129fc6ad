"""``sreq resolve``: resolve and display credentials for a service."""

import json

import click

from sreq.cli.common import fail, load_config, open_cache, runtime_settings
from sreq.config.settings import ContextConfig
from sreq.credentials import get_credentials
from sreq.exceptions import SreqError
from sreq.models.domain import ResolvedCredentials, mask_secret
from sreq.resolver import CredentialResolver, ResolveOptions


@click.command("resolve")
@click.argument("service")
@click.option("--env", "-e", help="Environment (defaults to the context or default_env)")
@click.option("--region", help="Region substituted for {region}")
@click.option("--project", help="Project substituted for {project}")
@click.option("--app", help="Application substituted for {app}")
@click.option("--context", "-c", "context_name", help="Named context from the configuration")
@click.option("--no-cache", is_flag=True, help="Bypass the credential cache")
@click.option("--offline", is_flag=True, help="Only use cached credentials")
@click.option("--timeout", type=float, help="Resolution deadline in seconds")
@click.option("--show-secrets", is_flag=True, help="Show secret values (default: masked)")
@click.option("--json", "as_json", is_flag=True, help="Print credentials as JSON")
@click.pass_context
def resolve_command(
    ctx: click.Context,
    service: str,
    env: str | None,
    region: str | None,
    project: str | None,
    app: str | None,
    context_name: str | None,
    no_cache: bool,
    offline: bool,
    timeout: float | None,
    show_secrets: bool,
    as_json: bool,
) -> None:
    """Resolve credentials for SERVICE.

    \b
    Examples:
        sreq resolve billing -e prod
        sreq resolve billing -c prod-eu --json
        sreq resolve billing -e dev --offline
    """
    settings = runtime_settings(ctx)
    try:
        config = load_config(ctx)

        context = ContextConfig()
        context_name = context_name or config.default_context
        if context_name:
            context = config.get_context(context_name)

        options = ResolveOptions.from_context(
            service,
            context,
            env=env or context.env or config.default_env,
            region=region,
            project=project,
            app=app,
            timeout=timeout or settings.timeout,
        )
        if not options.env:
            raise click.UsageError("No environment given: pass --env or set default_env")

        credentials = get_credentials(
            CredentialResolver(config),
            options,
            cache=open_cache(settings),
            no_cache=no_cache,
            offline=offline,
        )
    except SreqError as e:
        fail(e)

    values = _display_values(credentials, show_secrets)
    if as_json:
        click.echo(json.dumps(values, indent=2, sort_keys=True))
        return

    click.echo(click.style(f"{service} ({options.env})", bold=True))
    for name, value in values.items():
        click.echo(f"  {name:<10} {value if value is not None else '-'}")


def _display_values(credentials: ResolvedCredentials, show_secrets: bool) -> dict:
    if show_secrets:
        values: dict = {
            "base_url": credentials.base_url,
            "username": credentials.username,
            "password": credentials.password,
            "api_key": credentials.api_key,
        }
    else:
        values = credentials.masked()

    for name, value in sorted(credentials.custom.items()):
        values[name] = value if show_secrets else mask_secret(value)
    return values
