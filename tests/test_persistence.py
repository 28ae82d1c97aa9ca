"""Tests for utils/persistence.py and config/settings.py."""

import json

from config.settings import CONFIG, Settings
from utils.persistence import SettingsStore


class TestSettingsStore:
    def test_missing_file_is_empty(self, tmp_path):
        store = SettingsStore(tmp_path / "none.json")
        assert store.load() is False
        assert store.get_string("device", "model") is None

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "gpsami.json"
        path.write_text("{broken")
        store = SettingsStore(path)
        assert store.load() is False
        assert store.get_string("device", "model") is None

    def test_non_object_is_ignored(self, tmp_path):
        path = tmp_path / "gpsami.json"
        path.write_text("[1, 2]")
        assert SettingsStore(path).load() is False

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "sub" / "gpsami.json"
        store = SettingsStore(path)
        store.set_string("device", "model", "holux")
        store.set_string("device", "port", "/dev/ttyUSB0")
        store.set_string("output", "dir", "/home/me")
        assert store.save() is True

        data = json.loads(path.read_text())
        assert data["device"] == {"model": "holux", "port": "/dev/ttyUSB0"}

        reloaded = SettingsStore(path)
        assert reloaded.load() is True
        assert reloaded.get_string("device", "port") == "/dev/ttyUSB0"
        assert reloaded.get_string("output", "dir") == "/home/me"

    def test_read_only_never_writes(self, tmp_path):
        path = tmp_path / "gpsami.json"
        store = SettingsStore(path, read_only=True)
        store.set_string("device", "model", "mtk")
        assert store.save() is True
        assert not path.exists()
        assert store.get_string("device", "model") == "mtk"

    def test_default_location(self):
        assert SettingsStore().path == Settings.get_settings_file()


class TestConfig:
    def test_gpsbabel_env_override(self, monkeypatch):
        monkeypatch.setenv(Settings.GPSBABEL_ENV_VAR, "/opt/gpsbabel/bin/gpsbabel")
        assert CONFIG.get_gpsbabel_path() == "/opt/gpsbabel/bin/gpsbabel"

    def test_gpsbabel_default(self, monkeypatch):
        monkeypatch.delenv(Settings.GPSBABEL_ENV_VAR, raising=False)
        assert CONFIG.get_gpsbabel_path() == "gpsbabel"

    def test_assigned_path_wins(self, monkeypatch):
        monkeypatch.setenv(Settings.GPSBABEL_ENV_VAR, "/from/env")
        monkeypatch.setitem(CONFIG.__dict__, "GPSBABEL_PATH", "/from/cli")
        assert CONFIG.get_gpsbabel_path() == "/from/cli"

    def test_forwards_constants(self):
        assert CONFIG.APP_NAME == "GPSAmi"
        assert CONFIG.UNKNOWN_PORT_LABEL == "(Unknown)"
