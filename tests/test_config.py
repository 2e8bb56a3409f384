"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from shorecast.config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SOURCE_URL,
    ImportConfig,
    ShorecastConfig,
    find_project_root,
    load_config,
)
from shorecast.errors import ConfigError, ProjectNotInitializedError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("SHORECAST_IMPORT_ENABLED", raising=False)
    monkeypatch.delenv("SHORECAST_SOURCE_URL", raising=False)


class TestConfig:
    def test_load_config(self, tmp_project: Path, sample_csv: Path):
        config = load_config(tmp_project)
        assert config.project_name == "test-coast"
        assert config.imports.enabled is True
        assert config.imports.source_url == sample_csv.as_posix()
        assert config.imports.batch_size == 2

    def test_defaults(self, tmp_path: Path):
        (tmp_path / "shorecast.toml").write_text("[project]\nname = 'bare'\n")
        config = load_config(tmp_path)
        assert config.imports.source_url == DEFAULT_SOURCE_URL
        assert config.imports.batch_size == DEFAULT_BATCH_SIZE == 1000
        assert config.imports.refresh_interval_days == 7
        assert config.imports.delimiter == ","

    def test_find_project_root(self, tmp_project: Path):
        sub = tmp_project / "a" / "b"
        sub.mkdir(parents=True)
        assert find_project_root(sub) == tmp_project

    def test_find_project_root_not_found(self, tmp_path: Path):
        with pytest.raises(ProjectNotInitializedError):
            find_project_root(tmp_path)

    def test_save_and_reload(self, tmp_path: Path):
        config = ShorecastConfig(project_name="saved", project_root=tmp_path)
        config.imports.source_url = "https://example.com/data.zip"
        config.save()
        loaded = load_config(tmp_path)
        assert loaded.project_name == "saved"
        assert loaded.imports.source_url == "https://example.com/data.zip"

    def test_paths(self, tmp_project: Path):
        config = load_config(tmp_project)
        assert config.store_file == tmp_project / ".shorecast" / "records.db"

    def test_invalid_toml(self, tmp_path: Path):
        (tmp_path / "shorecast.toml").write_text("[project\nname=")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(tmp_path)

    def test_invalid_batch_size(self, tmp_path: Path):
        (tmp_path / "shorecast.toml").write_text("[import]\nbatch_size = 0\n")
        with pytest.raises(ConfigError, match="batch_size"):
            load_config(tmp_path)

    def test_invalid_delimiter(self):
        with pytest.raises(ConfigError, match="delimiter"):
            ImportConfig(delimiter="::")

    def test_refresh_interval_seconds(self):
        assert ImportConfig(refresh_interval_days=1).refresh_interval_seconds == 86400

    @pytest.mark.parametrize(
        "raw, expected", [("false", False), ('"false"', False), ('"on"', True)]
    )
    def test_enabled_in_file(self, tmp_path: Path, raw: str, expected: bool):
        (tmp_path / "shorecast.toml").write_text(f"[import]\nenabled = {raw}\n")
        assert load_config(tmp_path).imports.enabled is expected

    def test_enabled_not_boolean(self, tmp_path: Path):
        (tmp_path / "shorecast.toml").write_text('[import]\nenabled = "sometimes"\n')
        with pytest.raises(ConfigError, match="import.enabled"):
            load_config(tmp_path)

    def test_encoding_errors_default(self):
        assert ImportConfig().encoding_errors == "replace"

    def test_unknown_encoding_errors(self):
        with pytest.raises(ConfigError, match="encoding_errors"):
            ImportConfig(encoding_errors="shrug")


class TestEnvironmentOverrides:
    def test_source_url(self, tmp_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SHORECAST_SOURCE_URL", "https://mirror.example/data.csv")
        assert load_config(tmp_project).imports.source_url == "https://mirror.example/data.csv"

    @pytest.mark.parametrize("raw, expected", [("false", False), ("0", False), ("YES", True)])
    def test_enabled(self, tmp_project: Path, monkeypatch: pytest.MonkeyPatch, raw, expected):
        monkeypatch.setenv("SHORECAST_IMPORT_ENABLED", raw)
        assert load_config(tmp_project).imports.enabled is expected

    def test_enabled_garbage(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SHORECAST_IMPORT_ENABLED", "maybe")
        with pytest.raises(ConfigError, match="SHORECAST_IMPORT_ENABLED"):
            ImportConfig()
