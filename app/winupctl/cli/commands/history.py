"""History command for viewing, pruning, exporting and rolling back operations.

This module provides the `winupctl history` command group.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from winupctl.cli.display import create_history_table, create_rollback_table
from winupctl.cli.types import SourceChoice, get_backends, load_app_config
from winupctl.core.history import HistoryFilter, HistoryLedger
from winupctl.core.paths import get_reports_dir
from winupctl.core.report import ReportFormat
from winupctl.core.rollback import RollbackRunner, RollbackTarget, find_rollback_targets
from winupctl.models.history import OperationType
from winupctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    name="history",
    help="View, prune, export and roll back the update history.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    package: Annotated[
        str | None,
        typer.Option(
            "--package",
            "-p",
            help="Package name or glob pattern (e.g. 'Mozilla.*').",
        ),
    ] = None,
    source: Annotated[
        SourceChoice,
        typer.Option(
            "--source",
            "-s",
            help="Only entries from this source.",
            case_sensitive=False,
        ),
    ] = SourceChoice.ALL,
    operation: Annotated[
        OperationType | None,
        typer.Option(
            "--operation",
            "-o",
            help="Only entries of this operation type.",
            case_sensitive=False,
        ),
    ] = None,
    days: Annotated[
        int | None,
        typer.Option(
            "--days",
            "-d",
            help="Only entries from the last N days.",
            min=1,
        ),
    ] = None,
    failed: Annotated[
        bool,
        typer.Option(
            "--failed",
            help="Only failed operations.",
        ),
    ] = False,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show (most recent).",
        ),
    ] = 50,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show recorded operations, most recent last.

    Examples:
        winupctl history                        # Last 50 entries
        winupctl history --days 7 --failed      # Failures in the last week
        winupctl history -p 'Mozilla.*' -s winget
        winupctl history --json                 # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    history_filter = HistoryFilter(
        package_name=package,
        source=source.to_source(),
        operation=operation,
        days=days,
        success=False if failed else None,
    )
    entries = HistoryLedger().query(history_filter)

    if not entries:
        print_info("No history entries found.")
        return

    entries = entries[-limit:] if limit > 0 else entries

    if json_output:
        typer.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    console.print(create_history_table(entries))


@app.command()
def prune(
    ctx: typer.Context,
    days: Annotated[
        int | None,
        typer.Option(
            "--days",
            "-d",
            help="Keep this many days of history (defaults to history.retention_days).",
            min=1,
        ),
    ] = None,
) -> None:
    """Remove history entries older than the retention period."""
    config = load_app_config(ctx)
    retention = days or config.history.retention_days
    ledger = HistoryLedger()

    before = len(ledger.query())
    if not ledger.prune(retention):
        print_error(f"Failed to prune history at {ledger.path}")
        raise typer.Exit(code=1)

    removed = before - len(ledger.query())
    noun = "entry" if removed == 1 else "entries"
    print_success(f"Removed {removed} {noun} older than {retention} day(s).")


@app.command()
def export(
    report_format: Annotated[
        ReportFormat,
        typer.Option(
            "--format",
            "-f",
            help="Report format: html, csv or json.",
            case_sensitive=False,
        ),
    ] = ReportFormat.HTML,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Report file (defaults to the reports directory).",
            dir_okay=False,
        ),
    ] = None,
    days: Annotated[
        int,
        typer.Option(
            "--days",
            "-d",
            help="Include the last N days.",
            min=1,
        ),
    ] = 30,
) -> None:
    """Export recent history to an HTML, CSV or JSON report.

    Exits with code 1 if there is nothing to export.
    """
    if output is None:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        output = get_reports_dir() / f"update-history-{stamp}{report_format.suffix}"

    if not HistoryLedger().export_report(report_format, output, days):
        print_error(f"No report written for the last {days} day(s).")
        raise typer.Exit(code=1)

    print_success(f"Report written to {output}")


@app.command()
def rollback(
    ctx: typer.Context,
    package: Annotated[
        str,
        typer.Argument(help="Package name or glob pattern ('*' for every package)."),
    ],
    source: Annotated[
        SourceChoice,
        typer.Option(
            "--source",
            "-s",
            help="Only upgrades from this source.",
            case_sensitive=False,
        ),
    ] = SourceChoice.ALL,
    days: Annotated[
        int | None,
        typer.Option(
            "--days",
            "-d",
            help="Only upgrades from the last N days.",
            min=1,
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be rolled back without executing.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompts.",
        ),
    ] = False,
) -> None:
    """Reinstall the version a recorded upgrade replaced.

    Each package is confirmed separately. Failed rollbacks do not stop the
    batch; the command exits with code 1 if any of them failed.

    Examples:
        winupctl history rollback Git.Git          # Roll back the last Git upgrade
        winupctl history rollback 'Mozilla.*' -n   # Preview only
        winupctl history rollback '*' -d 1 -y      # Everything upgraded today
    """
    config = load_app_config(ctx)
    ledger = HistoryLedger()
    targets = find_rollback_targets(
        ledger,
        HistoryFilter(package_name=package, source=source.to_source(), days=days),
    )

    if not targets:
        print_info("No upgrades to roll back.")
        return

    console.print(create_rollback_table(targets))

    if dry_run:
        print_info("Dry-run: no changes made.")
        return

    backends = {
        backend.source: backend
        for backend in get_backends(source, timeout=config.updates.command_timeout)
    }
    runner = RollbackRunner(ledger, backends, record_history=config.history.enabled)

    def confirm(target: RollbackTarget) -> bool:
        return typer.confirm(
            f"Roll back {target.package_name} from {target.version} "
            f"to {target.previous_version}?"
        )

    results = runner.rollback_all(targets, confirm=None if yes else confirm)

    if not results:
        print_info("Cancelled.")
        return

    failed = [result for result in results if result.failed]
    for result in failed:
        print_error(f"{result.package}: {result.error or 'Rollback failed'}")

    succeeded = len(results) - len(failed)
    print_success(f"Rolled back {succeeded} of {len(results)} package(s).")
    if failed:
        raise typer.Exit(code=1)
