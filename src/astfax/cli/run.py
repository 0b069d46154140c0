"""CLI run command: the fax spooler daemon.

Runs the poll loop in the foreground, suitable for systemd management.
Stops on SIGTERM/SIGINT, and exits non-zero when the spool directories
cannot be created or the job store is lost so the supervisor can restart it.
"""

import logging
from pathlib import Path

import click

from astfax.cli import load_cli_config
from astfax.cli.exit_codes import ExitCode
from astfax.config import get_database_path, validate_config
from astfax.db import SQLiteJobStore
from astfax.exceptions import DirectoryCreationError, StoreConnectivityError
from astfax.jobs import PollLoop

logger = logging.getLogger(__name__)


@click.command("run")
@click.option(
    "--server-name",
    "-s",
    default=None,
    help="Process faxes of this iaxfriends name (default: from config).",
)
@click.option(
    "--interval",
    "-i",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between polls (default: 10).",
)
@click.option(
    "--database",
    "database_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the SQLite job store (default: ~/.astfax/faxes.db).",
)
@click.option(
    "--once",
    is_flag=True,
    default=False,
    help="Run a single poll cycle and exit.",
)
@click.option(
    "--max-cycles",
    type=click.IntRange(min=1),
    default=None,
    help="Exit after this many poll cycles.",
)
@click.pass_context
def run_command(
    ctx: click.Context,
    server_name: str | None,
    interval: float | None,
    database_path: Path | None,
    once: bool,
    max_cycles: int | None,
) -> None:
    """Poll for pending faxes and spool their call files.

    Examples:

        # Run as a daemon for one Asterisk peer
        astfax run --server-name upstream01

        # Process whatever is pending right now, then exit
        astfax run --once
    """
    config = load_cli_config(
        ctx,
        server_name=server_name,
        poll_interval=interval,
        database_path=database_path,
    )

    errors = validate_config(config)
    if errors:
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)

    store = SQLiteJobStore(get_database_path(config))
    loop = PollLoop.from_config(config, store)

    try:
        cycles = loop.run(max_cycles=1 if once else max_cycles)
    except DirectoryCreationError as e:
        logger.critical("Could not prepare spool directories: %s", e)
        ctx.exit(ExitCode.DIRECTORY_ERROR)
    except StoreConnectivityError as e:
        logger.critical("Lost connection to job store, shutting down: %s", e)
        ctx.exit(ExitCode.DATABASE_ERROR)
    except KeyboardInterrupt:
        ctx.exit(ExitCode.INTERRUPTED)

    logger.debug("Exiting after %d cycle(s)", cycles)
