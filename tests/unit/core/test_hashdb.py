"""Unit tests for the hash database."""

import json
from pathlib import Path

import pytest
from winupctl.core.hashdb import HashDatabase
from winupctl.models.package import PackageSource
from winupctl.models.validation import HashAlgorithm


@pytest.fixture
def hash_db(tmp_path: Path) -> HashDatabase:
    """Create a HashDatabase backed by a temporary file."""
    return HashDatabase(tmp_path / "hash-database.json")


class TestHashDatabase:
    """Tests for HashDatabase."""

    def test_get_missing(self, hash_db: HashDatabase) -> None:
        """An empty database has no records."""
        assert hash_db.get(PackageSource.WINGET, "Git.Git") is None
        assert hash_db.entries() == []

    def test_put_then_get(self, hash_db: HashDatabase) -> None:
        """A stored digest is read back under its key."""
        record = hash_db.put(
            PackageSource.WINGET,
            "Git.Git",
            "2.44.0",
            "deadbeef",
            HashAlgorithm.SHA256,
            Path("C:/Program Files/Git/git.exe"),
        )
        assert record is not None
        assert record.hash == "DEADBEEF"

        data = json.loads(hash_db.path.read_text())
        assert set(data) == {"CreatedAt", "LastUpdated", "Packages"}
        assert data["Packages"]["Winget/Git.Git"]["Hash"] == "DEADBEEF"
        assert hash_db.get(PackageSource.WINGET, "Git.Git") == record

    def test_put_replaces_previous(self, hash_db: HashDatabase) -> None:
        """Only the latest digest per package is kept."""
        hash_db.put(PackageSource.WINGET, "Git.Git", "2.43.0", "AAA", HashAlgorithm.SHA256, "a")
        hash_db.put(PackageSource.WINGET, "Git.Git", "2.44.0", "BBB", HashAlgorithm.SHA256, "a")
        records = hash_db.entries()
        assert len(records) == 1
        assert records[0].hash == "BBB"
        assert records[0].version == "2.44.0"

    def test_created_at_preserved(self, hash_db: HashDatabase) -> None:
        """CreatedAt survives later writes."""
        hash_db.put(PackageSource.WINGET, "A", "1", "AAA", HashAlgorithm.SHA256, "a")
        created = json.loads(hash_db.path.read_text())["CreatedAt"]
        hash_db.put(PackageSource.WINGET, "B", "1", "BBB", HashAlgorithm.SHA256, "b")
        assert json.loads(hash_db.path.read_text())["CreatedAt"] == created

    def test_remove(self, hash_db: HashDatabase) -> None:
        """remove() deletes one record."""
        hash_db.put(PackageSource.CHOCOLATEY, "vlc", "3.0.21", "AAA", HashAlgorithm.SHA256, "v")
        assert hash_db.remove(PackageSource.CHOCOLATEY, "vlc") is True
        assert hash_db.remove(PackageSource.CHOCOLATEY, "vlc") is False
        assert hash_db.get(PackageSource.CHOCOLATEY, "vlc") is None

    def test_corrupt_document_reads_empty(self, hash_db: HashDatabase) -> None:
        """A corrupt database reads as empty and is replaced on write."""
        hash_db.path.write_text("not json")
        assert hash_db.get(PackageSource.WINGET, "Git.Git") is None
        assert hash_db.put(PackageSource.WINGET, "Git.Git", "1", "AAA", HashAlgorithm.SHA1, "g")
        assert len(hash_db.entries()) == 1

    def test_malformed_record_ignored(self, hash_db: HashDatabase) -> None:
        """Records missing required fields are ignored."""
        hash_db.path.write_text(
            json.dumps({"Packages": {"Winget/Git.Git": {"PackageName": "Git.Git"}}})
        )
        assert hash_db.get(PackageSource.WINGET, "Git.Git") is None
        assert hash_db.entries() == []
