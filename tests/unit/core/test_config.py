"""Unit tests for configuration I/O operations.

Tests for loading, validating and saving config.toml.
"""

from pathlib import Path

import pytest
import tomli_w
from winupctl.core.config import (
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    config_exists,
    load_config,
    load_config_or_default,
    save_config,
)
from winupctl.models.config import AppConfig
from winupctl.models.package import PackageSource
from winupctl.models.validation import HashAlgorithm


class TestLoadConfig:
    """Tests for load_config function."""

    def test_missing_raises(self, tmp_path: Path) -> None:
        """load_config raises when the file doesn't exist."""
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "config.toml")

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("[cache\n")
        with pytest.raises(ConfigParseError):
            load_config(path)

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        """Unknown keys are rejected at load time."""
        path = tmp_path / "config.toml"
        path.write_text("[cache]\ndifferential_updates = true\nturbo = true\n")
        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_unknown_section_rejected(self, tmp_path: Path) -> None:
        """Unknown sections are rejected at load time."""
        path = tmp_path / "config.toml"
        path.write_text("[telemetry]\nenabled = false\n")
        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_out_of_range_rejected(self, tmp_path: Path) -> None:
        """Values outside their range are rejected."""
        path = tmp_path / "config.toml"
        path.write_text("[history]\nretention_days = 0\n")
        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_partial_file_uses_defaults(self, tmp_path: Path) -> None:
        """Omitted settings keep their defaults."""
        path = tmp_path / "config.toml"
        path.write_text(
            '[security]\nhash_algorithm = "sha-512"\ntrusted_publishers = ["Microsoft"]\n'
            '[updates]\nsources = ["winget"]\n'
        )
        config = load_config(path)
        assert config.security.hash_algorithm == HashAlgorithm.SHA512
        assert config.security.trusted_publishers == ["Microsoft"]
        assert config.updates.sources == [PackageSource.WINGET]
        assert config.history.retention_days == 90

    def test_health_checks(self, tmp_path: Path) -> None:
        """Health checks are argument vectors per package."""
        path = tmp_path / "config.toml"
        path.write_text(
            "[validation]\nhealth_check_enabled = true\n"
            '[validation.health_checks]\n"Git.Git" = ["git", "--version"]\n'
        )
        config = load_config(path)
        assert config.validation.health_check_for("Git.Git") == ["git", "--version"]
        assert config.validation.health_check_for("GIT.GIT") == ["git", "--version"]
        assert config.validation.health_check_for("Other") == []


class TestLoadConfigOrDefault:
    """Tests for load_config_or_default function."""

    def test_missing_returns_defaults(self, tmp_path: Path) -> None:
        """A missing file yields the default config."""
        assert load_config_or_default(tmp_path / "config.toml") == AppConfig()

    def test_invalid_still_raises(self, tmp_path: Path) -> None:
        """A broken file is never silently replaced by defaults."""
        path = tmp_path / "config.toml"
        path.write_text("[cache]\nbogus = 1\n")
        with pytest.raises(ConfigValidationError):
            load_config_or_default(path)


class TestSaveConfig:
    """Tests for save_config function."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """A saved config loads back identically."""
        config = AppConfig()
        config.security.trusted_publishers.append("Mozilla")
        config.updates.sources = [PackageSource.CHOCOLATEY]
        path = save_config(config, tmp_path / "nested" / "config.toml")

        assert config_exists(path)
        assert load_config(path) == config

    def test_serializes_enum_values(self, tmp_path: Path) -> None:
        """Enums are written as their string values."""
        path = save_config(AppConfig(), tmp_path / "config.toml")
        text = path.read_text()
        assert 'hash_algorithm = "SHA256"' in text
        assert '"Winget"' in text

    def test_output_is_valid_toml(self, tmp_path: Path) -> None:
        """Saved content matches tomli_w serialization of the model."""
        config = AppConfig()
        path = save_config(config, tmp_path / "config.toml")
        assert path.read_text() == tomli_w.dumps(config.model_dump(mode="json"))
