"""CLI package for winupctl.

This package contains the Typer application and all subcommands.
"""

from winupctl.cli.main import app

__all__ = ["app"]
