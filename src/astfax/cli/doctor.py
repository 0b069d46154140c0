"""Doctor command for checking the health of a spooler host.

Verifies that Ghostscript can be found, that the job store answers, and that
the spool directories are usable by the daemon.
"""

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path

import click

from astfax.cli import load_cli_config
from astfax.cli.exit_codes import ExitCode
from astfax.config import get_database_path, validate_config
from astfax.db import check_database_connectivity
from astfax.executor import GhostscriptConverter


@dataclass
class CheckResult:
    """Outcome of a single doctor check."""

    name: str
    ok: bool
    detail: str
    critical: bool = True


def _format_status(ok: bool) -> str:
    """Format status for display."""
    return "✓" if ok else "✗"


def _check_directory(label: str, path: Path) -> CheckResult:
    if not path.exists():
        # run creates missing directories on start-up
        return CheckResult(label, False, f"{path} does not exist", critical=False)
    if not path.is_dir():
        return CheckResult(label, False, f"{path} is not a directory")
    if not os.access(path, os.W_OK | os.X_OK):
        return CheckResult(label, False, f"{path} is not writable")
    return CheckResult(label, True, str(path))


def run_checks(config) -> list[CheckResult]:
    """Run every health check against a loaded configuration."""
    results: list[CheckResult] = []

    for error in validate_config(config):
        results.append(CheckResult("config", False, error, critical=False))

    converter = GhostscriptConverter(config.ghostscript)
    if converter.is_available():
        results.append(CheckResult("ghostscript", True, config.ghostscript.executable))
    else:
        results.append(
            CheckResult(
                "ghostscript",
                False,
                f"{config.ghostscript.executable} not found on PATH",
            )
        )

    db_path = get_database_path(config)
    if check_database_connectivity(db_path):
        results.append(CheckResult("job store", True, str(db_path)))
    else:
        results.append(
            CheckResult(
                "job store", False, f"{db_path} not reachable (run 'astfax init-db')"
            )
        )

    spool = config.spool
    results.append(_check_directory("outgoing spool", spool.outgoing_dir))
    results.append(_check_directory("fax outgoing", spool.fax_out_dir))
    results.append(_check_directory("fax incoming", spool.fax_in_dir))

    return results


@click.command("doctor")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
@click.pass_context
def doctor_command(ctx: click.Context, json_output: bool) -> None:
    """Check Ghostscript, the job store and the spool directories.

    Exit codes:
      0 - All checks passed
      60 - Some warnings (missing directories, incomplete config)
      61 - Critical issues (Ghostscript or job store unavailable)
    """
    config = load_cli_config(ctx)
    results = run_checks(config)

    if json_output:
        click.echo(json.dumps([asdict(r) for r in results], indent=2))
    else:
        click.echo("Fax Spooler Health Check")
        click.echo("=" * 40)
        for result in results:
            suffix = "" if result.ok or result.critical else " (warning)"
            click.echo(
                f"  {_format_status(result.ok)} {result.name}: {result.detail}{suffix}"
            )

    failed = [r for r in results if not r.ok]
    if any(r.critical for r in failed):
        ctx.exit(ExitCode.CRITICAL)
    if failed:
        ctx.exit(ExitCode.WARNINGS)
