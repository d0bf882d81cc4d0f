"""Hash database of last-known-good executable digests.

Document layout:

    {
        "CreatedAt": "...",
        "LastUpdated": "...",
        "Packages": {"Winget/Git.Git": {...}, ...}
    }

Each key holds exactly one record; put() overwrites the previous digest
rather than keeping a history.
"""

import logging
from pathlib import Path
from typing import Any

from winupctl.core.paths import get_hash_database_path
from winupctl.core.storage import DocumentError, read_json_document, write_json_document
from winupctl.models.package import PackageSource
from winupctl.models.validation import HashAlgorithm, HashRecord, hash_record_key
from winupctl.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


class HashDatabase:
    """Persists one digest per (source, package).

    Storage location: <state dir>/hash-database.json

    A missing or corrupt document reads as empty; the next write replaces
    it with a fresh document.
    """

    def __init__(self, path: Path | None = None) -> None:
        """Initialize HashDatabase.

        Args:
            path: Optional override for the document location.
        """
        self._path = path if path is not None else get_hash_database_path()

    @property
    def path(self) -> Path:
        """Path to the hash database document."""
        return self._path

    def _read_document(self) -> dict[str, Any]:
        data = read_json_document(self._path)
        if not isinstance(data, dict) or not isinstance(data.get("Packages"), dict):
            if data is not None:
                logger.warning("Hash database %s is malformed, treating as empty", self._path)
            now = utc_now_iso()
            return {"CreatedAt": now, "LastUpdated": now, "Packages": {}}
        return data

    def _write_document(self, document: dict[str, Any]) -> bool:
        document["LastUpdated"] = utc_now_iso()
        try:
            write_json_document(self._path, document)
        except DocumentError as e:
            logger.error("Failed to write hash database: %s", e)
            return False
        return True

    def get(self, source: PackageSource, package_name: str) -> HashRecord | None:
        """Look up the stored digest for a package.

        Returns:
            HashRecord, or None if absent or unreadable.
        """
        item = self._read_document()["Packages"].get(hash_record_key(source, package_name))
        if not isinstance(item, dict):
            return None
        try:
            return HashRecord.from_dict(item)
        except (KeyError, ValueError) as e:
            logger.warning(
                "Ignoring malformed hash record for %s/%s: %s", source.value, package_name, e
            )
            return None

    def put(
        self,
        source: PackageSource,
        package_name: str,
        version: str,
        digest: str,
        algorithm: HashAlgorithm,
        file_path: Path | str,
    ) -> HashRecord | None:
        """Store the current digest for a package, replacing any prior one.

        Returns:
            The written HashRecord, or None if the document could not be written.
        """
        record = HashRecord(
            package_name=package_name,
            source=source,
            version=version,
            hash=digest.upper(),
            algorithm=algorithm,
            file_path=str(file_path),
            timestamp=utc_now_iso(),
        )

        document = self._read_document()
        document["Packages"][record.key] = record.to_dict()
        if not self._write_document(document):
            return None

        logger.debug("Stored %s digest for %s", algorithm.value, record.key)
        return record

    def remove(self, source: PackageSource, package_name: str) -> bool:
        """Delete the stored digest for a package.

        Returns:
            True if a record was removed, False if none existed or on write failure.
        """
        document = self._read_document()
        if document["Packages"].pop(hash_record_key(source, package_name), None) is None:
            return False
        return self._write_document(document)

    def entries(self) -> list[HashRecord]:
        """Return all readable records in document order."""
        records: list[HashRecord] = []
        for key, item in self._read_document()["Packages"].items():
            if not isinstance(item, dict):
                continue
            try:
                records.append(HashRecord.from_dict(item))
            except (KeyError, ValueError) as e:
                logger.warning("Skipping malformed hash record %s: %s", key, e)
        return records
