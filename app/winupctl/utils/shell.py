"""Shell execution utilities.

Provides subprocess execution with captured output for the package
manager backends and health checks. Commands are always argument vectors;
nothing is passed through a shell.
"""

import shutil
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stripped."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
) -> CommandResult:
    """Execute a command and return the result.

    Output is decoded as UTF-8 with replacement so that console code page
    artifacts from Windows tools never raise.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=check,
        timeout=timeout,
        cwd=cwd,
    )
    return CommandResult(
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


def powershell_executable() -> str | None:
    """Return the available PowerShell executable, preferring Windows PowerShell."""
    for name in ("powershell", "pwsh"):
        if command_exists(name):
            return name
    return None


def run_powershell(script: str, *, timeout: float | None = 60.0) -> CommandResult:
    """Run a PowerShell script non-interactively.

    Args:
        script: PowerShell source passed via -Command.
        timeout: Maximum time in seconds to wait.

    Returns:
        CommandResult of the PowerShell process.

    Raises:
        FileNotFoundError: If no PowerShell executable is available.
        subprocess.TimeoutExpired: If the script exceeds timeout.
    """
    executable = powershell_executable()
    if executable is None:
        msg = "PowerShell is not available on this system"
        raise FileNotFoundError(msg)

    return run_command(
        [
            executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            script,
        ],
        timeout=timeout,
    )


def quote_powershell(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"
