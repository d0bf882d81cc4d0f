"""History ledger for package operations.

This module provides the HistoryLedger class for persisting and querying
operation history. The ledger is a flat JSON array of entries in
insertion order; it is only ever appended to and pruned in bulk.
"""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from winupctl.core.paths import get_history_path
from winupctl.core.report import ReportFormat, render_history_report
from winupctl.core.storage import DocumentError, read_json_document, write_json_document
from winupctl.models.history import HistoryEntry, OperationType, create_history_entry
from winupctl.models.package import PackageSource
from winupctl.utils.timestamps import parse_timestamp, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HistoryFilter:
    """Conjunctive filter for history queries.

    Every attribute left as None matches all entries.

    Attributes:
        package_name: Glob pattern matched case-insensitively (e.g., "Mozilla.*").
        source: Only entries from this source.
        operation: Only entries of this operation type.
        days: Only entries from the last N days.
        success: Only successful (True) or failed (False) entries.
    """

    package_name: str | None = None
    source: PackageSource | None = None
    operation: OperationType | None = None
    days: int | None = None
    success: bool | None = None

    def matches(self, entry: HistoryEntry, cutoff: datetime | None = None) -> bool:
        """Check whether an entry satisfies every supplied criterion.

        Args:
            entry: Entry to test.
            cutoff: Precomputed aware datetime for the days filter.
        """
        if self.package_name is not None and not fnmatch.fnmatchcase(
            entry.package_name.lower(), self.package_name.lower()
        ):
            return False
        if self.source is not None and entry.source != self.source:
            return False
        if self.operation is not None and entry.operation != self.operation:
            return False
        if self.success is not None and entry.success != self.success:
            return False
        if cutoff is not None:
            timestamp = parse_timestamp(entry.timestamp)
            if timestamp is None or timestamp < cutoff:
                return False
        return True


class HistoryLedger:
    """Manages the history document.

    Storage location: <state dir>/history.json

    Attributes:
        path: Location of the history document.
    """

    def __init__(self, path: Path | None = None) -> None:
        """Initialize HistoryLedger.

        Args:
            path: Optional override for the history document location.
        """
        self._path = path if path is not None else get_history_path()

    @property
    def path(self) -> Path:
        """Path to the history document."""
        return self._path

    def _read_raw(self) -> list[dict[str, Any]]:
        """Read the raw entry dictionaries.

        Missing, empty and corrupt documents all yield an empty list.
        """
        data = read_json_document(self._path)
        if data is None:
            return []
        if isinstance(data, dict):
            # A single entry serialized without the surrounding array
            return [data]
        if not isinstance(data, list):
            logger.warning("History document %s is not a JSON array", self._path)
            return []
        return [item for item in data if isinstance(item, dict)]

    def _parse_entries(self, raw: list[dict[str, Any]]) -> list[HistoryEntry]:
        entries: list[HistoryEntry] = []
        for index, item in enumerate(raw):
            try:
                entries.append(HistoryEntry.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupt history entry %d: %s", index, e)
        return entries

    def _backup_corrupt_document(self) -> None:
        """Preserve a document that exists but cannot be parsed."""
        if not self._path.exists() or read_json_document(self._path) is not None:
            return
        try:
            if not self._path.read_text(encoding="utf-8-sig").strip():
                return
            backup = self._path.with_name(
                f"{self._path.name}.corrupt-{utc_now().strftime('%Y%m%dT%H%M%SZ')}"
            )
            self._path.replace(backup)
            logger.warning("Moved unreadable history document to %s", backup)
        except OSError as e:
            logger.warning("Could not back up unreadable history document: %s", e)

    def append(self, entry: HistoryEntry) -> bool:
        """Append an entry to the history document.

        Creates the document if it doesn't exist, then loads it, appends and
        rewrites the whole document.

        Args:
            entry: The history entry to record.

        Returns:
            True if the entry was written, False otherwise.
        """
        self._backup_corrupt_document()
        raw = self._read_raw()
        raw.append(entry.to_dict())

        try:
            write_json_document(self._path, raw)
        except DocumentError as e:
            logger.error(
                "Failed to record %s of %s (%s): %s",
                entry.operation.value,
                entry.package_name,
                entry.source.value,
                e,
            )
            return False

        logger.debug(
            "Recorded %s of %s (%s) success=%s",
            entry.operation.value,
            entry.package_name,
            entry.source.value,
            entry.success,
        )
        return True

    def record(
        self,
        package_name: str,
        version: str,
        source: PackageSource,
        operation: OperationType,
        success: bool,
        previous_version: str | None = None,
        error_message: str = "",
    ) -> bool:
        """Create a stamped entry and append it.

        Returns:
            True if the entry was written, False otherwise.
        """
        entry = create_history_entry(
            package_name=package_name,
            version=version,
            source=source,
            operation=operation,
            success=success,
            previous_version=previous_version,
            error_message=error_message,
        )
        return self.append(entry)

    def query(self, history_filter: HistoryFilter | None = None) -> list[HistoryEntry]:
        """Return entries matching a filter, in insertion order.

        Args:
            history_filter: Criteria to apply. If None, returns all entries.

        Returns:
            Matching entries. Empty if the document is missing or empty.
        """
        entries = self._parse_entries(self._read_raw())
        if history_filter is None:
            return entries

        cutoff = None
        if history_filter.days is not None:
            cutoff = utc_now() - timedelta(days=history_filter.days)

        return [entry for entry in entries if history_filter.matches(entry, cutoff)]

    def prune(self, retention_days: int) -> bool:
        """Remove entries older than the retention period.

        Entries at or after the cutoff are kept, as are entries whose
        timestamp cannot be parsed. The number of removed entries is logged.

        Args:
            retention_days: Number of days of history to keep.

        Returns:
            True if pruning completed (including when nothing was removed),
            False if the document could not be written.
        """
        raw = self._read_raw()
        if not raw:
            logger.info("History is empty, nothing to prune")
            return True

        cutoff = utc_now() - timedelta(days=retention_days)
        kept: list[dict[str, Any]] = []
        for item in raw:
            timestamp = parse_timestamp(item.get("Timestamp"))
            if timestamp is None or timestamp >= cutoff:
                kept.append(item)

        removed = len(raw) - len(kept)
        if removed == 0:
            logger.info("No history entries older than %d day(s)", retention_days)
            return True

        try:
            write_json_document(self._path, kept)
        except DocumentError as e:
            logger.error("Failed to prune history: %s", e)
            return False

        logger.info(
            "Pruned %d history entr%s older than %d day(s)",
            removed,
            "y" if removed == 1 else "ies",
            retention_days,
        )
        return True

    def export_report(self, report_format: ReportFormat, output_path: Path, days: int) -> bool:
        """Render the last N days of history to a report file.

        Args:
            report_format: Output format.
            output_path: Destination file.
            days: Number of days of history to include.

        Returns:
            True if the report was written; False if there were no entries
            or the file could not be written.
        """
        entries = self.query(HistoryFilter(days=days))
        if not entries:
            logger.warning("No history entries in the last %d day(s); report not written", days)
            return False

        try:
            render_history_report(entries, report_format, output_path, days=days)
        except OSError as e:
            logger.error("Failed to write %s report to %s: %s", report_format.value, output_path, e)
            return False

        logger.info(
            "Exported %d history entr%s to %s",
            len(entries),
            "y" if len(entries) == 1 else "ies",
            output_path,
        )
        return True
