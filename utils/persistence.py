"""
Settings store for GPSAmi.

Saves and restores the last selected model, port and output directory.
"""
import json
from pathlib import Path
from typing import Dict, Optional

from config.settings import CONFIG
from utils.logger import get_logger


class SettingsStore:
    """
    String settings addressed by section and key.

    Uses JSON file storage for simplicity and human readability:
    ``{"device": {"model": "holux", "port": "/dev/ttyUSB0"}, "output": {"dir": "..."}}``.
    A missing or unreadable file leaves the store empty.
    """

    def __init__(self, settings_file: Optional[Path] = None, read_only: bool = False):
        """
        Initialize settings store. Nothing is read until load() is called.

        Args:
            settings_file: Path to settings file. Defaults to ~/.gpsami/gpsami.json.
            read_only: Keep changes in memory only; save() does not write.
        """
        self._logger = get_logger()
        self._file = Path(settings_file) if settings_file else CONFIG.get_settings_file()
        self._read_only = read_only
        self._data: Dict[str, Dict[str, str]] = {}

    @property
    def path(self) -> Path:
        return self._file

    def load(self) -> bool:
        """Load settings from file. Returns False and keeps defaults on failure."""
        if not self._file.exists():
            return False

        try:
            with open(self._file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self._logger.error("Settings", f"Could not load {self._file}: {e}")
            return False

        if not isinstance(data, dict):
            self._logger.error("Settings", f"Ignoring malformed settings in {self._file}")
            return False

        self._data = {
            str(section): {str(k): str(v) for k, v in values.items()}
            for section, values in data.items()
            if isinstance(values, dict)
        }
        return True

    def save(self) -> bool:
        """Save settings to file."""
        if self._read_only:
            return True
        try:
            self._file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._file, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
        except OSError as e:
            self._logger.error("Settings", f"Could not save {self._file}: {e}")
            return False
        return True

    def get_string(self, section: str, key: str) -> Optional[str]:
        """Get a stored value, or None if absent."""
        return self._data.get(section, {}).get(key)

    def set_string(self, section: str, key: str, value: str) -> None:
        """Set a value in memory. Call save() to persist."""
        self._data.setdefault(section, {})[key] = value
