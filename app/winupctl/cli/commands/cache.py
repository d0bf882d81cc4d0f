"""Cache commands for inspecting and clearing the version cache.

This module provides the `winupctl cache` command group.
"""

import json
from typing import Annotated

import typer

from winupctl.cli.display import create_cache_table
from winupctl.cli.types import SourceChoice
from winupctl.core.cache import VersionCache
from winupctl.utils.formatting import (
    console,
    create_table,
    print_error,
    print_info,
    print_success,
)
from winupctl.utils.timestamps import format_timestamp

app = typer.Typer(
    help="Inspect and clear the version cache.",
    no_args_is_help=True,
)


@app.command()
def show(
    source: Annotated[
        SourceChoice | None,
        typer.Option(
            "--source",
            "-s",
            help="Also list the cached packages of this source (or all).",
            case_sensitive=False,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output statistics as JSON.",
        ),
    ] = False,
) -> None:
    """Show cache statistics and, optionally, cached packages."""
    cache = VersionCache()
    stats = cache.statistics()
    if stats is None:
        print_error(f"Version cache {cache.path} is unreadable. Run 'winupctl cache clear'.")
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(json.dumps(stats.to_dict(), indent=2))
        return

    console.print(create_cache_table(stats))
    console.print(
        f"[muted]Last updated {format_timestamp(stats.last_updated)} "
        f"({stats.age_hours:.1f} hours ago)[/muted]"
    )

    if source is None:
        return

    entries = cache.load(source.to_source()) or []
    if not entries:
        print_info("No cached packages.")
        return

    table = create_table("Cached Packages", "Source", "Package", "Version", "Last Updated")
    for entry in entries:
        table.add_row(
            entry.source.value,
            entry.package_name,
            entry.version,
            format_timestamp(entry.last_updated),
        )
    console.print(table)


@app.command()
def clear(
    source: Annotated[
        SourceChoice,
        typer.Option(
            "--source",
            "-s",
            help="Source to clear: winget, chocolatey, store, or all.",
            case_sensitive=False,
        ),
    ] = SourceChoice.ALL,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Forget cached versions so that every package is treated as new."""
    selected = source.to_source()
    label = selected.value if selected is not None else "all sources"
    if not yes and not typer.confirm(f"Clear the version cache for {label}?", default=False):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    if not VersionCache().clear(selected):
        print_error("Failed to clear the version cache.")
        raise typer.Exit(code=1)

    print_success(f"Cleared version cache for {label}.")
