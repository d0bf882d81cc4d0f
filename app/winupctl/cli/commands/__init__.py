"""CLI commands for winupctl.

This package contains all subcommand implementations.
"""

from winupctl.cli.commands import cache, config, history, priority, scan, update, validate

__all__ = ["cache", "config", "history", "priority", "scan", "update", "validate"]
