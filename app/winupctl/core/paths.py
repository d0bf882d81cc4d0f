"""Path management for winupctl.

Resolves the configuration, state and cache directories. The lookup order is:

1. ``WINUPCTL_HOME`` - every directory becomes a subdirectory of it.
2. ``%LOCALAPPDATA%\\winupctl`` on Windows.
3. XDG directories everywhere else (useful for development and tests).

Layout:
- Config: config.toml, priority.json
- State: history.json, hash-database.json, logs/, reports/
- Cache: version-cache.json
"""

import os
import sys
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "winupctl"

CONFIG_FILENAME = "config.toml"
PRIORITY_FILENAME = "priority.json"
HISTORY_FILENAME = "history.json"
HASH_DATABASE_FILENAME = "hash-database.json"
VERSION_CACHE_FILENAME = "version-cache.json"


def _get_home_override() -> Path | None:
    """Return the WINUPCTL_HOME override if set."""
    base = os.environ.get("WINUPCTL_HOME")
    if base:
        return Path(base)
    return None


def _get_windows_dir(subdir: str) -> Path | None:
    """Get the per-user application directory on Windows.

    Args:
        subdir: Subdirectory under %LOCALAPPDATA%\\winupctl.

    Returns:
        Path on Windows when LOCALAPPDATA is set, None otherwise.
    """
    if sys.platform != "win32":
        return None
    local_app_data = os.environ.get("LOCALAPPDATA")
    if not local_app_data:
        return None
    return Path(local_app_data) / APP_NAME / subdir


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def _resolve_dir(name: str, env_var: str, default_subdir: str) -> Path:
    override = _get_home_override()
    if override is not None:
        return override / name
    windows_dir = _get_windows_dir(name)
    if windows_dir is not None:
        return windows_dir
    return _get_xdg_dir(env_var, default_subdir)


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path holding config.toml and priority.json.
    """
    return _resolve_dir("config", "XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the history ledger, the hash database, logs and
    exported reports. It should persist between runs but is not configuration.

    Returns:
        Path to the state directory.
    """
    return _resolve_dir("state", "XDG_STATE_HOME", ".local/state")


def get_cache_dir() -> Path:
    """Get the cache directory path.

    Returns:
        Path holding the version cache.
    """
    return _resolve_dir("cache", "XDG_CACHE_HOME", ".cache")


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_config_dir() / CONFIG_FILENAME


def get_priority_config_path() -> Path:
    """Get the priority configuration file path."""
    return get_config_dir() / PRIORITY_FILENAME


def get_history_path() -> Path:
    """Get the history ledger file path."""
    return get_state_dir() / HISTORY_FILENAME


def get_hash_database_path() -> Path:
    """Get the hash database file path."""
    return get_state_dir() / HASH_DATABASE_FILENAME


def get_version_cache_path() -> Path:
    """Get the version cache file path."""
    return get_cache_dir() / VERSION_CACHE_FILENAME


def get_log_dir() -> Path:
    """Get the transcript log directory path."""
    return get_state_dir() / "logs"


def get_reports_dir() -> Path:
    """Get the default directory for exported history reports."""
    return get_state_dir() / "reports"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")


def ensure_cache_dir() -> Path:
    """Create the cache directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_cache_dir(), "cache")


def ensure_dirs() -> None:
    """Create all required application directories."""
    ensure_config_dir()
    ensure_state_dir()
    ensure_cache_dir()
