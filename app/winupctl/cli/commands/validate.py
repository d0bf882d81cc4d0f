"""Validate commands for checking installed packages on demand.

This module provides the `winupctl validate` command group. Both commands
exit with code 1 when validation fails.
"""

import json
from typing import Annotated

import typer

from winupctl.cli.display import create_security_table, create_validation_table
from winupctl.cli.types import (
    SourceChoice,
    get_backends,
    load_app_config,
    require_single_source,
)
from winupctl.core.hashdb import HashDatabase
from winupctl.core.security import SecurityValidator
from winupctl.core.validator import UpdateValidator
from winupctl.models.validation import UpdateValidationRequest
from winupctl.utils.formatting import console, print_error

app = typer.Typer(
    help="Validate installed packages.",
    no_args_is_help=True,
)


@app.command("update")
def validate_update(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Package identifier.")],
    source: Annotated[
        SourceChoice,
        typer.Option(
            "--source",
            "-s",
            help="Package source: winget, chocolatey or store.",
            case_sensitive=False,
        ),
    ] = SourceChoice.WINGET,
    previous: Annotated[
        str | None,
        typer.Option("--previous", help="Version before the update."),
    ] = None,
    expected: Annotated[
        str | None,
        typer.Option("--expected", help="Version the update should have installed."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Check that an update took effect (version and health check)."""
    config = load_app_config(ctx)
    selected = require_single_source(source)
    backends = {b.source: b for b in get_backends(source)}

    if not backends[selected].is_available():
        print_error(f"{selected.value} is not available on this system.")
        raise typer.Exit(code=1)

    validator = UpdateValidator(config.validation, backends)
    result = validator.validate_batch(
        [
            UpdateValidationRequest(
                package_name=name,
                source=selected,
                previous_version=previous,
                expected_version=expected,
            )
        ]
    )[0]

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        console.print(create_validation_table([result]))
        if result.output:
            console.print(result.output, style="muted", markup=False, highlight=False)

    if not result.success:
        raise typer.Exit(code=1)


@app.command("security")
def validate_security(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Package identifier.")],
    source: Annotated[
        SourceChoice,
        typer.Option(
            "--source",
            "-s",
            help="Package source: winget, chocolatey or store.",
            case_sensitive=False,
        ),
    ] = SourceChoice.WINGET,
    expected_hash: Annotated[
        str | None,
        typer.Option("--expected-hash", help="Digest the executable must have."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Check an installed package's executable hash and signature.

    The first check of a package records its digest; later checks fail if
    the executable changed without an update.
    """
    config = load_app_config(ctx)
    selected = require_single_source(source)
    backends = {b.source: b for b in get_backends(source)}

    validator = SecurityValidator(config.security, backends, HashDatabase())
    result = validator.validate(name, selected, expected_hash=expected_hash)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        console.print(create_security_table(result))

    if not result.success:
        raise typer.Exit(code=1)
