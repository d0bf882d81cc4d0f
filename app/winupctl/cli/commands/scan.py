"""Scan command implementation.

Lists packages with an available upgrade and reports which of them are
new or changed since they were last cached.
"""

import json
from enum import Enum
from typing import Annotated

import typer

from winupctl.cli.display import create_changes_table
from winupctl.cli.types import (
    SourceChoice,
    create_orchestrator,
    get_backends,
    load_app_config,
)
from winupctl.models.cache import PackageChange
from winupctl.utils.formatting import console, print_error, print_info, print_warning

app = typer.Typer(
    help="Scan sources for available upgrades.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


@app.callback(invoke_without_command=True)
def scan_upgrades(
    ctx: typer.Context,
    source: Annotated[
        SourceChoice,
        typer.Option(
            "--source",
            "-s",
            help="Source to scan: winget, chocolatey, store, or all.",
            case_sensitive=False,
        ),
    ] = SourceChoice.ALL,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Scan for upgrades that are new or changed since the last run.

    Every change is recorded in the history as a Scan entry. The version
    cache is not modified.

    Examples:
        winupctl scan                       # Scan all configured sources
        winupctl scan --source chocolatey   # Scan Chocolatey only
        winupctl scan --format json         # Output as JSON
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_app_config(ctx)
    orchestrator = create_orchestrator(config)

    available = []
    for backend in get_backends(source, order=config.updates.sources):
        if backend.is_available():
            available.append(backend)
        else:
            print_warning(f"{backend.source.value} is not available.")

    if not available:
        print_error("No package sources are available on this system.")
        raise typer.Exit(code=1)

    changes: list[PackageChange] = []
    for backend in available:
        changes.extend(orchestrator.scan(backend))

    if output_format == OutputFormat.JSON:
        typer.echo(json.dumps([change.to_dict() for change in changes], indent=2))
        return

    if not changes:
        print_info("No new or changed upgrades since the last run.")
        return

    console.print(create_changes_table(changes, "Available Upgrades"))
    console.print(f"\n[muted]{len(changes)} new or changed upgrade(s)[/muted]")
