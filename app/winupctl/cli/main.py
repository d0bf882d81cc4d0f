"""Main CLI application entry point.

Defines the Typer application, the global logging and config options and
the command groups.
"""

from pathlib import Path
from typing import Annotated

import typer

from winupctl import __version__
from winupctl.cli.commands import cache, config, history, priority, scan, update, validate
from winupctl.utils.logging_setup import configure_logging

app = typer.Typer(
    name="winupctl",
    help="Prioritized, validated software updates for Windows.",
    epilog=(
        "Documents are kept under %LOCALAPPDATA%\\winupctl; "
        "set WINUPCTL_HOME to relocate them."
    ),
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"winupctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log every backend command and check (DEBUG).",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log errors.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config.toml (defaults to the user config directory).",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """winupctl - Prioritized, validated software updates for Windows.

    Upgrades Winget, Chocolatey and Microsoft Store packages tier by tier
    (Critical first, Deferred last). Packages whose available version was
    already processed are skipped. Each upgrade is checked for a version
    change, an optional health check, an unchanged executable digest and a
    trusted signature, then written to the history.

    Typical workflow:
        winupctl scan                       # What changed since the last run
        winupctl update --dry-run           # Preview the prioritized plan
        winupctl update                     # Upgrade, validate, record
        winupctl history --failed           # Review failures
        winupctl history rollback Git.Git   # Reinstall the previous version
    """
    if verbose and quiet:
        msg = "--verbose conflicts with --quiet"
        raise typer.BadParameter(msg)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path
    configure_logging(verbose=verbose, quiet=quiet)


app.add_typer(scan.app, name="scan")
app.add_typer(update.app, name="update")
app.add_typer(history.app, name="history")
app.add_typer(cache.app, name="cache")
app.add_typer(priority.app, name="priority")
app.add_typer(validate.app, name="validate")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
