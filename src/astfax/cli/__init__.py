"""CLI module for the Asterisk fax spooler."""

import logging
from pathlib import Path

import click

from astfax.cli.exit_codes import ExitCode
from astfax.config import AstfaxConfig, TomlParseError, get_config

logger = logging.getLogger(__name__)


def load_cli_config(ctx: click.Context, **overrides) -> AstfaxConfig:
    """Build the configuration for a command from the group options.

    Args:
        ctx: Click context carrying the group options in ctx.obj.
        **overrides: Command-level CLI overrides passed to get_config.

    Exits with ExitCode.CONFIG_ERROR if the configuration is invalid.
    """
    obj = ctx.ensure_object(dict)
    try:
        return get_config(
            config_path=obj.get("config_path"),
            log_level=obj.get("log_level"),
            log_file=obj.get("log_file"),
            log_format=obj.get("log_format"),
            strict=True,
            **overrides,
        )
    except (TomlParseError, ValueError) as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)


def _configure_logging(ctx: click.Context) -> None:
    from astfax.logging import configure_logging

    config = load_cli_config(ctx)
    configure_logging(config.logging)


@click.group()
@click.version_option(package_name="asterisk-fax-spooler")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.astfax/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Asterisk fax spooler - turn queued faxes into Asterisk call files."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level
    ctx.obj["log_file"] = log_file
    ctx.obj["log_format"] = "json" if log_json else None

    _configure_logging(ctx)


def _register_commands() -> None:
    from astfax.cli.db import init_db_command
    from astfax.cli.doctor import doctor_command
    from astfax.cli.jobs import jobs_group
    from astfax.cli.run import run_command

    main.add_command(run_command)
    main.add_command(init_db_command)
    main.add_command(jobs_group)
    main.add_command(doctor_command)


_register_commands()
