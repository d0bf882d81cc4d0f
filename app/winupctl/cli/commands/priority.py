"""Priority commands for managing update tiers.

This module provides the `winupctl priority` command group.
"""

from typing import Annotated

import typer

from winupctl.cli.display import create_priority_table
from winupctl.cli.types import SourceChoice, require_priority_config, require_single_source
from winupctl.core.priority import PriorityStore, classify
from winupctl.models.priority import PriorityTier
from winupctl.utils.formatting import (
    console,
    format_tier,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Show and edit package priority tiers.",
    no_args_is_help=True,
)

SourceOption = Annotated[
    SourceChoice,
    typer.Option(
        "--source",
        "-s",
        help="Package source: winget, chocolatey or store.",
        case_sensitive=False,
    ),
]


@app.command()
def show() -> None:
    """Show every package assigned to a tier."""
    store = PriorityStore()
    config = require_priority_config(store)

    if not config.enable_priority_ordering:
        print_warning("Priority ordering is disabled; every package is Normal.")

    console.print(create_priority_table(config))
    console.print(
        f"[muted]Ordering strategy: {config.ordering_strategy.value} "
        f"({store.path})[/muted]"
    )


@app.command("classify")
def classify_package(
    name: Annotated[str, typer.Argument(help="Package identifier.")],
    source: SourceOption = SourceChoice.WINGET,
) -> None:
    """Show the tier a package would be updated in."""
    selected = require_single_source(source)
    tier = classify(name, selected, require_priority_config())
    console.print(f"{name} ({selected.value}): {format_tier(tier)}")


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Package identifier.")],
    tier: Annotated[
        PriorityTier,
        typer.Option(
            "--tier",
            "-t",
            help="Tier: Critical, High, Low or Deferred.",
            case_sensitive=False,
        ),
    ],
    source: SourceOption = SourceChoice.WINGET,
) -> None:
    """Add a package to a priority tier.

    A package may be listed in several tiers; the highest one wins.
    """
    selected = require_single_source(source)
    if tier == PriorityTier.NORMAL:
        print_error("Normal is the default tier. Use 'winupctl priority remove' instead.")
        raise typer.Exit(code=1)

    store = PriorityStore()
    config = require_priority_config(store)
    if name in config.packages_for(tier, selected):
        print_info(f"{name} is already in the {tier.value} tier for {selected.value}.")
        return

    if not store.add_to_tier(name, selected, tier):
        print_error(f"Failed to add {name} to the {tier.value} tier.")
        raise typer.Exit(code=1)

    print_success(f"Added {name} ({selected.value}) to the {tier.value} tier.")
    effective = classify(name, selected, store.load())
    if effective != tier:
        print_warning(f"{name} is also listed as {effective.value}, which takes precedence.")


@app.command()
def remove(
    name: Annotated[str, typer.Argument(help="Package identifier.")],
    source: SourceOption = SourceChoice.WINGET,
) -> None:
    """Remove a package from every tier (it becomes Normal)."""
    selected = require_single_source(source)
    require_priority_config()

    if not PriorityStore().remove_from_all_tiers(name, selected):
        print_info(f"{name} is not in any tier for {selected.value}.")
        return

    print_success(f"Removed {name} ({selected.value}) from all tiers.")
