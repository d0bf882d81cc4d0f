"""Unit tests for cache commands."""

import json

from typer.testing import CliRunner
from winupctl.cli.main import app
from winupctl.core.cache import VersionCache
from winupctl.models.package import PackageSource

runner = CliRunner()


def _seed() -> VersionCache:
    cache = VersionCache()
    cache.upsert(PackageSource.WINGET, "Git.Git", "2.44.0")
    cache.upsert(PackageSource.WINGET, "Mozilla.Firefox", "129.0.1")
    cache.upsert(PackageSource.CHOCOLATEY, "vlc", "3.0.21")
    return cache


class TestCacheShow:
    """Tests for winupctl cache show."""

    def test_show_statistics(self) -> None:
        """Statistics are shown for every source."""
        _seed()
        result = runner.invoke(app, ["cache", "show"])

        assert result.exit_code == 0
        assert "Version Cache" in result.stdout

    def test_show_json(self) -> None:
        """--json emits per-source counts."""
        _seed()
        result = runner.invoke(app, ["cache", "show", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["total"] == 3
        assert data["per_source"]["Winget"] == 2
        assert data["per_source"]["Chocolatey"] == 1

    def test_show_packages(self) -> None:
        """--source also lists cached packages."""
        _seed()
        result = runner.invoke(app, ["cache", "show", "--source", "chocolatey"])

        assert result.exit_code == 0
        assert "vlc" in result.stdout

    def test_show_unreadable(self) -> None:
        """A corrupt cache document exits with code 1."""
        cache = VersionCache()
        cache.path.parent.mkdir(parents=True, exist_ok=True)
        cache.path.write_text("{not json", encoding="utf-8")

        result = runner.invoke(app, ["cache", "show"])

        assert result.exit_code == 1
        assert "unreadable" in result.output


class TestCacheClear:
    """Tests for winupctl cache clear."""

    def test_clear_one_source(self) -> None:
        """Clearing a source keeps the others."""
        cache = _seed()
        result = runner.invoke(app, ["cache", "clear", "--source", "winget", "--yes"])

        assert result.exit_code == 0
        assert "Cleared version cache for Winget." in result.stdout
        assert cache.load(PackageSource.WINGET) == []
        assert cache.get(PackageSource.CHOCOLATEY, "vlc") is not None

    def test_clear_all_confirmed(self) -> None:
        """Confirming the prompt clears every source."""
        cache = _seed()
        result = runner.invoke(app, ["cache", "clear"], input="y\n")

        assert result.exit_code == 0
        assert cache.load() == []

    def test_clear_aborted(self) -> None:
        """Declining the prompt leaves the cache untouched."""
        cache = _seed()
        result = runner.invoke(app, ["cache", "clear"], input="n\n")

        assert result.exit_code == 0
        assert "Aborted." in result.stdout
        assert len(cache.load() or []) == 3
