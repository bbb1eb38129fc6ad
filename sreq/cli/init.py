"""``sreq init``: create the configuration directory."""

import click

from sreq.cli.common import fail, runtime_settings
from sreq.config.settings import init_config_dir
from sreq.exceptions import SreqError


@click.command("init")
@click.pass_context
def init_command(ctx: click.Context) -> None:
    """Create default config.yaml, services.yaml and the cache key.

    Existing files are left untouched.
    """
    config_dir = runtime_settings(ctx).resolved_config_dir
    try:
        created = init_config_dir(config_dir)
    except SreqError as e:
        fail(e)
    except OSError as e:
        raise click.ClickException(f"Cannot initialize {config_dir}: {e}") from e

    if not created:
        click.echo(f"Configuration already initialized in {config_dir}")
        return

    click.echo(click.style(f"Initialized {config_dir}", fg="green"))
    for path in created:
        click.echo(f"  created {path}")
