"""``sreq cache``: inspect and clear the credential cache."""

import click

from sreq.cache.cache import CredentialCache
from sreq.cli.common import fail, runtime_settings
from sreq.exceptions import SreqError


def _open(ctx: click.Context) -> CredentialCache:
    settings = runtime_settings(ctx)
    try:
        return CredentialCache(settings.resolved_config_dir, ttl=settings.cache_ttl)
    except SreqError as e:
        fail(e)


@click.group(name="cache")
def cache_group() -> None:
    """Manage the encrypted credential cache."""


@cache_group.command(name="status")
@click.pass_context
def cache_status(ctx: click.Context) -> None:
    """Show cached entries and their expiry."""
    status = _open(ctx).status()

    state = "enabled" if status.enabled else "disabled"
    click.echo(f"Cache:      {state}")
    click.echo(f"Directory:  {status.directory}")
    click.echo(f"TTL:        {status.ttl}s")
    click.echo(f"Entries:    {status.count}")
    click.echo(f"Total size: {status.total_bytes} bytes")

    if status.entries:
        click.echo()
    for entry in status.entries:
        marker = click.style("expired", fg="yellow") if entry.expired else click.style("valid", fg="green")
        click.echo(
            f"  {entry.service:<20} {entry.env:<10} "
            f"cached {entry.cached_at:%Y-%m-%d %H:%M:%S}  {marker}"
        )


@cache_group.command(name="clear")
@click.option("--env", "-e", help="Only clear entries for this environment")
@click.pass_context
def cache_clear(ctx: click.Context, env: str | None) -> None:
    """Remove cached credentials."""
    cache = _open(ctx)
    try:
        if env:
            cache.clear_env(env)
        else:
            cache.clear()
    except SreqError as e:
        fail(e)

    target = f"environment '{env}'" if env else "all environments"
    click.echo(click.style(f"Cache cleared for {target}", fg="green"))
