"""Version cache for differential updates.

This module provides the VersionCache class, which persists the last-seen
version of every package per source in a single JSON document:

    {
        "LastUpdated": "...",
        "Packages": {"Store": [...], "Winget": [...], "Chocolatey": [...]}
    }

Each package item is {"Name", "Version", "LastUpdated"}. There is at most
one item per (source, Name).
"""

import logging
from pathlib import Path
from typing import Any

from winupctl.core.paths import get_version_cache_path
from winupctl.core.storage import DocumentError, read_json_document, write_json_document
from winupctl.models.cache import CacheEntry, CacheStatistics
from winupctl.models.package import PackageSource
from winupctl.utils.timestamps import parse_timestamp, utc_now, utc_now_iso

logger = logging.getLogger(__name__)


def _empty_document() -> dict[str, Any]:
    return {
        "LastUpdated": utc_now_iso(),
        "Packages": {source.value: [] for source in PackageSource},
    }


def _is_valid_document(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    packages = data.get("Packages")
    if not isinstance(packages, dict):
        return False
    return all(isinstance(items, list) for items in packages.values())


class VersionCache:
    """Persists last-seen package versions per source.

    Storage location: <cache dir>/version-cache.json

    Read failures never propagate: a missing document is created on first
    load, and a corrupt document is reported as None by load() and replaced
    by an empty document on the next write.

    Attributes:
        path: Location of the cache document.
    """

    def __init__(self, path: Path | None = None) -> None:
        """Initialize VersionCache.

        Args:
            path: Optional override for the cache document location.
        """
        self._path = path if path is not None else get_version_cache_path()

    @property
    def path(self) -> Path:
        """Path to the cache document."""
        return self._path

    def _initialize(self) -> dict[str, Any]:
        document = _empty_document()
        write_json_document(self._path, document)
        logger.info("Initialized version cache at %s", self._path)
        return document

    def _read_document(self) -> dict[str, Any] | None:
        """Read the cache document, creating it if absent.

        Returns:
            The document, or None if it exists but cannot be parsed.
        """
        if not self._path.exists():
            try:
                return self._initialize()
            except DocumentError as e:
                logger.error("Cannot initialize version cache: %s", e)
                return None

        data = read_json_document(self._path)
        if not _is_valid_document(data):
            logger.error("Version cache %s is unreadable or malformed", self._path)
            return None

        packages: dict[str, list[Any]] = data["Packages"]
        for source in PackageSource:
            packages.setdefault(source.value, [])
        return data

    def load(self, source: PackageSource | None = None) -> list[CacheEntry] | None:
        """Load cached entries.

        Args:
            source: Restrict to one source. If None, returns all sources.

        Returns:
            List of CacheEntry in document order, or None if the document
            could not be read.
        """
        document = self._read_document()
        if document is None:
            return None

        sources = [source] if source is not None else list(PackageSource)
        entries: list[CacheEntry] = []
        for src in sources:
            for item in document["Packages"].get(src.value, []):
                try:
                    entries.append(CacheEntry.from_dict(src, item))
                except (KeyError, TypeError) as e:
                    logger.warning("Skipping malformed cache item in %s: %s", src.value, e)
        return entries

    def get(self, source: PackageSource, package_name: str) -> CacheEntry | None:
        """Find the cached entry for a package (exact name match).

        Returns:
            CacheEntry if cached, None otherwise (including unreadable cache).
        """
        for entry in self.load(source) or []:
            if entry.package_name == package_name:
                return entry
        return None

    def upsert(self, source: PackageSource, package_name: str, version: str) -> bool:
        """Record the version of a package.

        Replaces the existing entry in place if one exists, otherwise appends
        a new entry. The document-level LastUpdated always advances and the
        whole document is rewritten.

        Args:
            source: Update source of the package.
            package_name: Package identifier.
            version: Version string to record.

        Returns:
            True if the document was written, False otherwise.
        """
        document = self._read_document()
        if document is None:
            logger.warning("Resetting unreadable version cache %s", self._path)
            document = _empty_document()

        now = utc_now_iso()
        items: list[dict[str, Any]] = document["Packages"][source.value]
        for item in items:
            if isinstance(item, dict) and item.get("Name") == package_name:
                item["Version"] = version
                item["LastUpdated"] = now
                break
        else:
            items.append(
                CacheEntry(
                    source=source,
                    package_name=package_name,
                    version=version,
                    last_updated=now,
                ).to_dict()
            )

        document["LastUpdated"] = now
        try:
            write_json_document(self._path, document)
        except DocumentError as e:
            logger.error("Failed to update cache for %s/%s: %s", source.value, package_name, e)
            return False

        logger.debug("Cached %s/%s at version %s", source.value, package_name, version)
        return True

    def clear(self, source: PackageSource | None = None) -> bool:
        """Clear cached entries.

        Args:
            source: Empty only this source's list. If None, the whole
                document is deleted and reinitialized.

        Returns:
            True if the cache was cleared, False on write failure.
        """
        try:
            if source is None:
                if self._path.exists():
                    self._path.unlink()
                self._initialize()
                logger.info("Cleared version cache for all sources")
                return True

            document = self._read_document() or _empty_document()
            document["Packages"][source.value] = []
            document["LastUpdated"] = utc_now_iso()
            write_json_document(self._path, document)
        except (DocumentError, OSError) as e:
            logger.error("Failed to clear version cache: %s", e)
            return False

        logger.info("Cleared version cache for %s", source.value)
        return True

    def statistics(self) -> CacheStatistics | None:
        """Summarize the cache.

        Age is computed from the document-level LastUpdated against the
        current time; it only goes negative on clock skew.

        Returns:
            CacheStatistics, or None if the document could not be read.
        """
        document = self._read_document()
        if document is None:
            return None

        last_updated = str(document.get("LastUpdated") or "")
        parsed = parse_timestamp(last_updated)
        age_hours = 0.0
        if parsed is not None:
            age_hours = (utc_now() - parsed).total_seconds() / 3600

        per_source = {
            source: len(document["Packages"].get(source.value, [])) for source in PackageSource
        }
        return CacheStatistics(
            last_updated=last_updated,
            age_hours=age_hours,
            age_days=age_hours / 24,
            per_source=per_source,
        )
