"""Unit tests for config_loader module - YAML loading and validation.

Tests cover:
- Loading the bundled parameters.yaml
- Loading custom configuration files
- Validation of windows, language, output format and log level
- Catalog path resolution

Real-world significance:
- A bad configuration must fail before any patient is processed
"""

from __future__ import annotations

import copy
from pathlib import Path

import pytest
import yaml

from vaxplan import config_loader


@pytest.mark.unit
class TestLoadConfig:
    """Unit tests for load_config."""

    def test_load_default_config(self) -> None:
        """Verify the bundled parameters.yaml loads and validates.

        Real-world significance:
        - The CLI uses this file when --config is not given
        """
        config = config_loader.load_config()
        assert config["engine"]["upcoming_window_days"] == 10
        assert config["reminders"]["language"] == "en"
        assert config["report"]["output_format"] == "csv"

    def test_load_custom_config(self, config_file: Path) -> None:
        config = config_loader.load_config(config_file)
        assert config["logging"]["level"] == "INFO"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            config_loader.load_config(tmp_path / "missing.yaml")

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert config_loader.load_config(path) == {}

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("engine: [unclosed", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            config_loader.load_config(path)


@pytest.mark.unit
class TestValidateConfig:
    """Unit tests for validate_config."""

    def test_valid_config_passes(self, default_config) -> None:
        config_loader.validate_config(default_config)

    @pytest.mark.parametrize(
        "section,key,value,message",
        [
            ("engine", "upcoming_window_days", 0, "must be positive"),
            ("engine", "upcoming_window_days", "10", "must be an integer"),
            ("engine", "catalog_path", 5, "catalog_path must be a string"),
            ("reminders", "urgent_window_days", -1, "must be positive"),
            ("reminders", "language", "de", "Invalid reminders.language"),
            ("reminders", "language", 5, "Valid options: en, fr"),
            ("report", "output_format", "xlsx", "output_format must be one of"),
            ("logging", "level", "LOUD", "logging.level must be one of"),
        ],
    )
    def test_invalid_values_raise(self, default_config, section, key, value, message) -> None:
        config = copy.deepcopy(default_config)
        config[section][key] = value
        with pytest.raises(ValueError, match=message):
            config_loader.validate_config(config)

    def test_language_code_is_case_insensitive(self, default_config) -> None:
        config = copy.deepcopy(default_config)
        config["reminders"]["language"] = "FR"
        config_loader.validate_config(config)

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(ValueError, match="must be a mapping"):
            config_loader.validate_config(["engine"])


@pytest.mark.unit
class TestResolveCatalogPath:
    """Unit tests for resolve_catalog_path."""

    def test_null_uses_default(self, default_config) -> None:
        assert config_loader.resolve_catalog_path(default_config) is None

    def test_relative_path_resolved_against_root(self, default_config) -> None:
        config = copy.deepcopy(default_config)
        config["engine"]["catalog_path"] = "config/other.json"
        assert config_loader.resolve_catalog_path(config) == (
            config_loader.ROOT_DIR / "config" / "other.json"
        )

    def test_absolute_path_kept(self, default_config, tmp_path: Path) -> None:
        config = copy.deepcopy(default_config)
        config["engine"]["catalog_path"] = str(tmp_path / "catalog.json")
        assert config_loader.resolve_catalog_path(config) == tmp_path / "catalog.json"
