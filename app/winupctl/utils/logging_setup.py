"""Logging configuration for the command-line interface.

Library modules only create loggers; handlers are attached here, once, by
the CLI entry point.
"""

import logging
from pathlib import Path

from rich.logging import RichHandler

from winupctl.utils.formatting import err_console

TRANSCRIPT_FILENAME = "winupctl.log"

_TRANSCRIPT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_PACKAGE_LOGGER = "winupctl"


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Attach a Rich console handler to the package logger.

    Args:
        verbose: Show INFO and DEBUG records.
        quiet: Show only ERROR records.
    """
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR

    logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=err_console,
        level=level,
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def enable_transcript(log_dir: Path) -> Path | None:
    """Also write every INFO and higher record to a transcript file.

    Calling this more than once is harmless.

    Args:
        log_dir: Directory for the transcript (created if needed).

    Returns:
        Transcript path, or None if the file cannot be opened.
    """
    path = log_dir / TRANSCRIPT_FILENAME
    logger = logging.getLogger(_PACKAGE_LOGGER)
    for existing in logger.handlers:
        if not isinstance(existing, logging.FileHandler):
            continue
        if Path(existing.baseFilename) == path.absolute():
            return path

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        logger.warning("Cannot open transcript %s: %s", path, e)
        return None

    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(_TRANSCRIPT_FORMAT))
    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)
    return path
