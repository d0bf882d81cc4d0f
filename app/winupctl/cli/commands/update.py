"""Update command implementation.

Upgrades packages in priority order, validating and recording each one.
"""

from typing import Annotated

import typer

from winupctl.cli.display import create_outcomes_table, create_plan_table
from winupctl.cli.types import (
    SourceChoice,
    create_orchestrator,
    get_backends,
    load_app_config,
)
from winupctl.models.operation import UpdateOutcome
from winupctl.models.priority import OrderingStrategy
from winupctl.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Upgrade packages in priority order.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def update_packages(
    ctx: typer.Context,
    source: Annotated[
        SourceChoice,
        typer.Option(
            "--source",
            "-s",
            help="Source to update: winget, chocolatey, store, or all.",
            case_sensitive=False,
        ),
    ] = SourceChoice.ALL,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be upgraded without executing.",
        ),
    ] = False,
    strategy: Annotated[
        OrderingStrategy | None,
        typer.Option(
            "--strategy",
            help="Ordering within a tier (overrides the priority config).",
            case_sensitive=False,
        ),
    ] = None,
) -> None:
    """Upgrade every new or changed package.

    Packages are upgraded tier by tier (Critical, High, Normal, Low,
    Deferred). Each upgrade is validated, recorded in the history and, on
    success, written to the version cache. History older than the
    configured retention is pruned at the end of the run.

    Exits with code 1 if any package failed.

    Examples:
        winupctl update                       # Update all configured sources
        winupctl update --source winget       # Winget only
        winupctl update --dry-run             # Preview the update order
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_app_config(ctx)
    dry_run = dry_run or config.updates.dry_run
    orchestrator = create_orchestrator(config)

    available = []
    for backend in get_backends(
        source,
        order=config.updates.sources,
        timeout=float(config.updates.command_timeout),
    ):
        if backend.is_available():
            available.append(backend)
        else:
            print_warning(f"{backend.source.value} is not available.")

    if not available:
        print_error("No package sources are available on this system.")
        raise typer.Exit(code=1)

    outcomes: list[UpdateOutcome] = []
    for backend in available:
        if dry_run:
            planned = orchestrator.plan(backend, strategy)
            if planned is None:
                print_error(f"Could not list {backend.source.value} upgrades.")
                continue
            ordered, _ = planned
            if ordered:
                console.print(create_plan_table(ordered, dry_run=True))
            else:
                print_info(f"{backend.source.value}: nothing to update.")
            continue

        results = orchestrator.run(backend, strategy=strategy)
        if results:
            console.print(create_outcomes_table(results))
        else:
            print_info(f"{backend.source.value}: nothing to update.")
        outcomes.extend(results)

    if dry_run:
        print_info("Dry run: no packages were changed.")
        return

    if config.history.enabled:
        orchestrator.ledger.prune(config.history.retention_days)

    failed = [outcome for outcome in outcomes if not outcome.success]
    if failed:
        print_error(f"{len(failed)} of {len(outcomes)} update(s) failed.")
        raise typer.Exit(code=1)

    if outcomes:
        print_success(f"Updated {len(outcomes)} package(s).")
