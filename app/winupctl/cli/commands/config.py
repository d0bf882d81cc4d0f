"""Config commands for creating and inspecting config.toml.

This module provides the `winupctl config` command group.
"""

from typing import Annotated

import tomli_w
import typer

from winupctl.cli.types import get_config_path, load_app_config
from winupctl.core import paths
from winupctl.core.config import ConfigError, config_exists, save_config
from winupctl.core.priority import PriorityConfigError, PriorityStore
from winupctl.models.config import AppConfig
from winupctl.utils.formatting import console, create_table, print_error, print_success

app = typer.Typer(
    help="Create and inspect the configuration.",
    no_args_is_help=True,
)


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a config.toml with every setting at its default.

    Also creates priority.json when it does not exist yet.
    """
    path = get_config_path(ctx) or paths.get_config_path()
    if config_exists(path) and not force:
        print_error(f"Config already exists: {path}")
        console.print("[muted]Use --force to overwrite.[/muted]")
        raise typer.Exit(code=1)

    try:
        paths.ensure_dirs()
        save_config(AppConfig(), path)
    except (ConfigError, RuntimeError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    store = PriorityStore()
    try:
        store.load()
    except PriorityConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {path}")
    console.print(f"[muted]Priority tiers: {store.path}[/muted]")


@app.command()
def show(ctx: typer.Context) -> None:
    """Print the effective configuration as TOML."""
    config = load_app_config(ctx)
    console.print(
        tomli_w.dumps(config.model_dump(mode="json")),
        markup=False,
        highlight=False,
    )


@app.command("path")
def show_paths(ctx: typer.Context) -> None:
    """Show where winupctl reads and writes its files."""
    table = create_table("File Locations", "Document", "Path")
    table.add_row("Config", str(get_config_path(ctx) or paths.get_config_path()))
    table.add_row("Priority tiers", str(paths.get_priority_config_path()))
    table.add_row("Version cache", str(paths.get_version_cache_path()))
    table.add_row("History", str(paths.get_history_path()))
    table.add_row("Hash database", str(paths.get_hash_database_path()))
    table.add_row("Logs", str(paths.get_log_dir()))
    table.add_row("Reports", str(paths.get_reports_dir()))
    console.print(table)
