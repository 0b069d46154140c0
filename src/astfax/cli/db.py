"""CLI command to initialize the SQLite job store."""

import sqlite3
from pathlib import Path

import click

from astfax.cli import load_cli_config
from astfax.cli.exit_codes import ExitCode
from astfax.config import get_database_path
from astfax.db import create_schema, get_connection


@click.command("init-db")
@click.option(
    "--database",
    "database_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the SQLite job store (default: ~/.astfax/faxes.db).",
)
@click.pass_context
def init_db_command(ctx: click.Context, database_path: Path | None) -> None:
    """Create the job store tables. Safe to run more than once."""
    config = load_cli_config(ctx, database_path=database_path)
    db_path = get_database_path(config)

    try:
        with get_connection(db_path) as conn:
            create_schema(conn)
    except (sqlite3.Error, OSError) as e:
        click.echo(f"Error: could not initialize {db_path}: {e}", err=True)
        ctx.exit(ExitCode.DATABASE_ERROR)

    click.echo(f"Initialized job store at {db_path}")
