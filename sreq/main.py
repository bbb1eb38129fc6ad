"""CLI entry point for sreq."""

import click
from pydantic import ValidationError as PydanticValidationError

from sreq.cli.cache import cache_group
from sreq.cli.health import health_command
from sreq.cli.init import init_command
from sreq.cli.resolve import resolve_command
from sreq.config.settings import RuntimeSettings
from sreq.utils.logging_config import configure_logging


@click.group()
@click.option(
    "--config",
    "config_path",
    envvar="SREQ_CONFIG",
    type=click.Path(dir_okay=False),
    help="Path to config.yaml (default: ~/.sreq/config.yaml)",
)
@click.option("--log-level", default="WARNING", help="Logging level")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str) -> None:
    """sreq: resolve service credentials from Consul, AWS, env and dotenv."""
    configure_logging(log_level)

    try:
        settings = RuntimeSettings()
    except PydanticValidationError as e:
        raise click.ClickException(f"Invalid SREQ_* environment settings: {e}") from e

    ctx.obj = {"config_path": config_path, "settings": settings}


cli.add_command(init_command)
cli.add_command(resolve_command)
cli.add_command(health_command)
cli.add_command(cache_group)


if __name__ == "__main__":
    cli()
