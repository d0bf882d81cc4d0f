"""Utility modules for winupctl.

This module exports commonly used utility functions.
"""

from winupctl.utils.formatting import (
    console,
    create_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from winupctl.utils.shell import CommandResult, command_exists, run_command, run_powershell

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "create_table",
    "err_console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
    "run_powershell",
]
