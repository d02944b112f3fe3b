"""Tests for settings persistence and configuration."""

import json
import logging
from pathlib import Path

from tarnertop.config import AppConfig
from tarnertop.models import Theme
from tarnertop.settings import AppSettings, SettingsStore


class TestSettingsStore:
    """Tests for SettingsStore."""

    def test_missing_file_defaults_to_dark(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")
        assert store.load() == AppSettings(theme=Theme.DARK)

    def test_round_trip(self, tmp_path):
        store = SettingsStore(tmp_path / "nested" / "settings.json")
        assert store.save(AppSettings(theme=Theme.LIGHT))
        assert store.load().theme is Theme.LIGHT
        assert json.loads(store.path.read_text()) == {"theme": "Light"}

    def test_malformed_file_defaults_and_warns(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("theme = Light")
        store = SettingsStore(path)

        with caplog.at_level(logging.WARNING, logger="tarnertop.settings"):
            settings = store.load()

        assert settings.theme is Theme.DARK
        assert "Error parsing config file" in caplog.text

    def test_unknown_theme_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"theme": "Purple"}))
        assert SettingsStore(path).load().theme is Theme.DARK

    def test_non_object_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")
        assert SettingsStore(path).load().theme is Theme.DARK

    def test_save_failure_is_reported(self, tmp_path, caplog):
        blocker = tmp_path / "file"
        blocker.write_text("")
        store = SettingsStore(blocker / "settings.json")

        with caplog.at_level(logging.ERROR, logger="tarnertop.settings"):
            assert not store.save(AppSettings())

        assert "Error saving config file" in caplog.text


class TestAppConfig:
    """Tests for AppConfig."""

    def test_paths(self, tmp_path):
        config = AppConfig(config_dir=tmp_path, export_dir=tmp_path / "dl")
        assert config.settings_path == tmp_path / "tarnertop_config.json"
        assert config.log_path == tmp_path / "tarnertop.log"
        assert config.export_path == tmp_path / "dl" / "tarnertop_export.csv"

    def test_defaults(self, monkeypatch):
        for name in [
            "TARNERTOP_CONFIG_DIR",
            "TARNERTOP_EXPORT_DIR",
            "TARNERTOP_REFRESH_INTERVAL",
            "TARNERTOP_TOAST_DURATION",
            "XDG_CONFIG_HOME",
        ]:
            monkeypatch.delenv(name, raising=False)

        config = AppConfig.from_env()

        assert config.config_dir == Path.home() / ".config" / "tarnertop"
        assert config.export_dir == Path.home() / "Downloads"
        assert config.refresh_interval == 1.0
        assert config.toast_duration == 3.0

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TARNERTOP_CONFIG_DIR", str(tmp_path / "cfg"))
        monkeypatch.setenv("TARNERTOP_EXPORT_DIR", str(tmp_path / "out"))
        monkeypatch.setenv("TARNERTOP_REFRESH_INTERVAL", "2.5")
        monkeypatch.setenv("TARNERTOP_TOAST_DURATION", "1")

        config = AppConfig.from_env()

        assert config.config_dir == tmp_path / "cfg"
        assert config.export_dir == tmp_path / "out"
        assert config.refresh_interval == 2.5
        assert config.toast_duration == 1.0

    def test_bad_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("TARNERTOP_REFRESH_INTERVAL", "fast")
        assert AppConfig.from_env().refresh_interval == 1.0

    def test_xdg_config_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TARNERTOP_CONFIG_DIR", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert AppConfig.from_env().config_dir == tmp_path / "tarnertop"
