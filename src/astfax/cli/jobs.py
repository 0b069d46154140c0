"""CLI commands for inspecting the fax queue."""

import json
import logging
from pathlib import Path

import click

from astfax.cli import load_cli_config
from astfax.cli.exit_codes import ExitCode
from astfax.config import get_database_path
from astfax.db import FaxJob, FaxState, SQLiteJobStore
from astfax.exceptions import StoreConnectivityError

logger = logging.getLogger(__name__)

_STATE_COLORS = {
    FaxState.CREATED: "yellow",
    FaxState.PROCESSING: "cyan",
    FaxState.PROCESSED: "green",
}


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 3] + "..."


@click.group("jobs")
def jobs_group() -> None:
    """Inspect outgoing fax jobs.

    Examples:

        # List recent faxes
        astfax jobs list

        # Faxes that failed mid-pipeline and need an operator
        astfax jobs list --state processing
    """


@jobs_group.command("list")
@click.option(
    "--state",
    "-s",
    type=click.Choice(["created", "processing", "processed", "all"]),
    default="all",
    help="Filter by fax state.",
)
@click.option(
    "--limit",
    "-n",
    type=int,
    default=50,
    help="Maximum number of faxes to show.",
)
@click.option(
    "--database",
    "database_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the SQLite job store (default: ~/.astfax/faxes.db).",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output in JSON format.",
)
@click.pass_context
def list_jobs(
    ctx: click.Context,
    state: str,
    limit: int,
    database_path: Path | None,
    json_output: bool,
) -> None:
    """List outgoing faxes, newest first."""
    config = load_cli_config(ctx, database_path=database_path)
    store = SQLiteJobStore(get_database_path(config))

    state_filter = None if state == "all" else FaxState(state)
    try:
        store.ping()
        jobs = store.list_jobs(state=state_filter, limit=limit)
    except StoreConnectivityError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(ExitCode.DATABASE_ERROR)

    if json_output:
        _output_jobs_json(jobs)
        return

    if not jobs:
        click.echo("No faxes found.")
        return

    click.echo(
        f"{'ID':<8} {'STATE':<12} {'TO':<16} {'TRUNK':<6} "
        f"{'FILE':<32} {'UPDATED':<20}"
    )
    click.echo("-" * 98)

    for job in jobs:
        # Pad before styling so ANSI codes don't break alignment
        state_colored = click.style(
            f"{job.state.value:<12}", fg=_STATE_COLORS[job.state]
        )
        updated = (job.updated_at or "")[:19].replace("T", " ")
        click.echo(
            f"{job.id:<8} {state_colored} {_truncate(job.to, 16):<16} "
            f"{job.outgoing_number_id:<6} {_truncate(job.filename, 32):<32} "
            f"{updated:<20}"
        )


def _output_jobs_json(jobs: list[FaxJob]) -> None:
    data = [
        {
            "id": job.id,
            "state": job.state.value,
            "to": job.to,
            "outgoing_number_id": job.outgoing_number_id,
            "filename": job.filename,
            "created_at": job.created_at,
            "updated_at": job.updated_at,
        }
        for job in jobs
    ]
    click.echo(json.dumps(data, indent=2))
