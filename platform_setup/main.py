"""CLI entry point for the platform installer."""

import sys
from pathlib import Path

import click
import structlog

from platform_setup.cli import cache_group, configure_command, proxy_group, services_group
from platform_setup.cli.context import SetupContext, echo_error
from platform_setup.config import SetupSettings
from platform_setup.exceptions import ConfigurationError
from platform_setup.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace directory (default: ./platform-workspace)",
)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Optional YAML settings file",
)
@click.option("--log-level", default=None, help="Logging level (default: INFO)")
@click.option("--json-logs", is_flag=True, help="Write log events as JSON lines")
@click.option("--no-cache", is_flag=True, help="Wipe the credential cache and ask everything again")
@click.version_option(package_name="platform-setup")
@click.pass_context
def cli(
    ctx: click.Context,
    workspace: Path | None,
    config: str | None,
    log_level: str | None,
    json_logs: bool,
    no_cache: bool,
) -> None:
    """platform-setup: configure the Monadical platform services."""
    try:
        settings = SetupSettings.from_yaml(config) if config else SetupSettings()
    except ConfigurationError as e:
        echo_error(e)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    if workspace is not None:
        settings = settings.model_copy(update={"workspace_root": workspace})

    configure_logging(log_level or settings.log_level, json_output=json_logs)
    log.debug("workspace", path=str(settings.workspace_root))

    ctx.obj = SetupContext(settings=settings, reset_cache=no_cache)


cli.add_command(cache_group)
cli.add_command(services_group)
cli.add_command(configure_command)
cli.add_command(proxy_group)


if __name__ == "__main__":
    cli()
