"""``sreq health``: check connectivity to every configured backend."""

import sys

import click

from sreq.cli.common import EXIT_PROVIDER_ERROR, fail, load_config, runtime_settings
from sreq.exceptions import SreqError
from sreq.resolver import CredentialResolver


def _print_check(name: str, error: BaseException | None) -> None:
    if error is None:
        click.echo(f"  {click.style('[OK]', fg='green')} {name}")
        return

    click.echo(f"  {click.style('[FAIL]', fg='red')} {name}")
    message = error.message if isinstance(error, SreqError) else str(error)
    click.echo(f"       {message}")


@click.command("health")
@click.option("--timeout", type=float, help="Deadline for the whole check in seconds")
@click.pass_context
def health_command(ctx: click.Context, timeout: float | None) -> None:
    """Check that every configured backend is reachable.

    \b
    Exit codes:
      0 - All backends healthy
      4 - At least one backend failed
    """
    try:
        resolver = CredentialResolver(load_config(ctx))
    except SreqError as e:
        fail(e)

    results = resolver.health_check(timeout=timeout or runtime_settings(ctx).timeout)
    if not results:
        click.echo("No providers configured")
        return

    click.echo(click.style("Providers:", bold=True))
    for name, error in results.items():
        _print_check(name, error)

    if any(error is not None for error in results.values()):
        sys.exit(EXIT_PROVIDER_ERROR)
