"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum
from pathlib import Path

import typer

from winupctl.core.cache import VersionCache
from winupctl.core.config import require_config
from winupctl.core.hashdb import HashDatabase
from winupctl.core.history import HistoryLedger
from winupctl.core.orchestrator import UpdateOrchestrator
from winupctl.core.paths import get_log_dir
from winupctl.core.priority import PriorityConfigError, PriorityStore
from winupctl.models.config import AppConfig
from winupctl.models.package import PackageSource
from winupctl.models.priority import PriorityConfig
from winupctl.sources.base import PackageBackend
from winupctl.sources.chocolatey import ChocolateyBackend
from winupctl.sources.store import StoreBackend
from winupctl.sources.winget import WingetBackend
from winupctl.utils.formatting import print_error
from winupctl.utils.logging_setup import enable_transcript


class SourceChoice(str, Enum):
    """Available update sources for CLI commands."""

    WINGET = "winget"
    CHOCOLATEY = "chocolatey"
    STORE = "store"
    ALL = "all"

    def to_source(self) -> PackageSource | None:
        """Map to a PackageSource (None for ALL)."""
        if self == SourceChoice.ALL:
            return None
        return PackageSource.parse(self.value)


_BACKEND_TYPES: dict[PackageSource, type[PackageBackend]] = {
    PackageSource.WINGET: WingetBackend,
    PackageSource.CHOCOLATEY: ChocolateyBackend,
    PackageSource.STORE: StoreBackend,
}


def get_backends(
    source: SourceChoice = SourceChoice.ALL,
    *,
    order: list[PackageSource] | None = None,
    dry_run: bool = False,
    timeout: float = 1800.0,
) -> list[PackageBackend]:
    """Get backend instances based on source selection.

    Args:
        source: The source choice (winget, chocolatey, store, or all).
        order: Sources included by ALL, in processing order. Defaults to
            Winget, Chocolatey, Store.
        dry_run: Create backends in dry-run mode.
        timeout: Operation command timeout in seconds.

    Returns:
        List of backend instances.
    """
    selected = source.to_source()
    if selected is not None:
        sources = [selected]
    else:
        sources = order or [PackageSource.WINGET, PackageSource.CHOCOLATEY, PackageSource.STORE]

    return [
        _BACKEND_TYPES[src](dry_run=dry_run, timeout=timeout) for src in dict.fromkeys(sources)
    ]


def get_available_backends(
    source: SourceChoice = SourceChoice.ALL,
    *,
    order: list[PackageSource] | None = None,
    dry_run: bool = False,
    timeout: float = 1800.0,
) -> list[PackageBackend]:
    """Get backends whose package manager is installed.

    Args:
        source: The source choice (winget, chocolatey, store, or all).
        order: Sources included by ALL, in processing order.
        dry_run: Create backends in dry-run mode.
        timeout: Operation command timeout in seconds.

    Returns:
        List of available backend instances.
    """
    backends = get_backends(source, order=order, dry_run=dry_run, timeout=timeout)
    return [b for b in backends if b.is_available()]


def get_config_path(ctx: typer.Context) -> Path | None:
    """Return the --config override stored by the root callback, if any."""
    obj = ctx.find_root().obj
    if isinstance(obj, dict):
        return obj.get("config_path")
    return None


def load_app_config(ctx: typer.Context) -> AppConfig:
    """Load the application config once per invocation.

    Also starts the log transcript when the config enables it.

    Raises:
        typer.Exit: If the config file exists but is invalid.
    """
    root = ctx.find_root()
    root.ensure_object(dict)
    cached = root.obj.get("config")
    if isinstance(cached, AppConfig):
        return cached

    config = require_config(get_config_path(ctx))
    root.obj["config"] = config
    if config.logging.transcript:
        enable_transcript(get_log_dir())
    return config


def require_single_source(source: SourceChoice) -> PackageSource:
    """Convert a source choice that must name exactly one source.

    Raises:
        typer.Exit: If the choice is ALL.
    """
    selected = source.to_source()
    if selected is None:
        print_error("This command needs a single source (winget, chocolatey or store).")
        raise typer.Exit(code=1)
    return selected


def require_priority_config(store: PriorityStore | None = None) -> PriorityConfig:
    """Load the priority configuration or exit with an error message.

    Raises:
        typer.Exit: If the priority document is corrupt or invalid.
    """
    store = store or PriorityStore()
    try:
        return store.load()
    except PriorityConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def create_orchestrator(config: AppConfig) -> UpdateOrchestrator:
    """Wire an UpdateOrchestrator to the default document locations.

    Raises:
        typer.Exit: If the priority configuration cannot be loaded.
    """
    return UpdateOrchestrator(
        config=config,
        cache=VersionCache(),
        ledger=HistoryLedger(),
        priority_config=require_priority_config(),
        hash_db=HashDatabase(),
    )
