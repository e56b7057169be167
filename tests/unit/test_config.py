"""Tests for polymap.config."""

from pathlib import Path

import pytest

from polymap import config as config_module
from polymap.config import DEFAULT_OVERPASS_URL, AppConfig, get_config


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config", None)
    for name in (
        "POLYMAP_CACHE_DIR",
        "POLYMAP_OUTPUT_DIR",
        "POLYMAP_STYLE",
        "POLYMAP_OVERPASS_URL",
        "POLYMAP_MAX_WORKERS",
        "POLYMAP_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestAppConfig:
    def test_defaults(self):
        config = AppConfig.load()
        assert config.overpass_url == DEFAULT_OVERPASS_URL
        assert config.max_workers == 4
        assert config.style_path is None
        assert config.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("POLYMAP_CACHE_DIR", str(tmp_path / "cache"))
        monkeypatch.setenv("POLYMAP_OUTPUT_DIR", str(tmp_path / "out"))
        monkeypatch.setenv("POLYMAP_STYLE", str(tmp_path / "style.yaml"))
        monkeypatch.setenv("POLYMAP_OVERPASS_URL", "http://localhost:8080/api/map")
        monkeypatch.setenv("POLYMAP_MAX_WORKERS", "2")
        monkeypatch.setenv("POLYMAP_LOG_LEVEL", "debug")

        config = AppConfig.load()
        assert config.cache_dir == tmp_path / "cache"
        assert config.output_dir == tmp_path / "out"
        assert config.style_path == tmp_path / "style.yaml"
        assert config.overpass_url == "http://localhost:8080/api/map"
        assert config.max_workers == 2
        assert config.log_level == "DEBUG"

    def test_invalid_worker_count(self, monkeypatch):
        monkeypatch.setenv("POLYMAP_MAX_WORKERS", "0")
        with pytest.raises(ValueError):
            AppConfig.load()

    def test_ensure_directories(self, tmp_path):
        config = AppConfig(cache_dir=tmp_path / "c", output_dir=tmp_path / "o")
        config.ensure_directories()
        assert (tmp_path / "c").is_dir()
        assert (tmp_path / "o").is_dir()

    def test_get_config_is_cached(self):
        assert get_config() is get_config()
        assert isinstance(get_config().cache_dir, Path)
