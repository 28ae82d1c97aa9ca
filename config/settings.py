"""
Global configuration for GPSAmi.

This module contains all configurable parameters used throughout the application.
Modify values here to adjust behavior without changing code.
"""
import os
import sys
from pathlib import Path


class Settings:
    """Global application settings - class-level constants for easy access."""

    # Application metadata
    APP_NAME = "GPSAmi"
    VERSION = "0.4.0"

    # Platform detection
    PLATFORM = "Windows" if sys.platform == "win32" else "Linux"

    # Paths
    SETTINGS_DIR = str(Path.home() / ".gpsami")
    SETTINGS_FILE = str(Path.home() / ".gpsami" / "gpsami.json")
    LOG_FILE_PATH = str(Path.home() / ".gpsami" / "logs" / "gpsami.log")
    DESCRIPTOR_TABLE_PATH = str(Path(__file__).resolve().parent / "devices.json")

    # gpsbabel configuration
    GPSBABEL_PATH = "gpsbabel"
    GPSBABEL_ENV_VAR = "GPSAMI_GPSBABEL"
    OUTPUT_BASENAME = "gpsami"
    DEFAULT_FORMAT = "gpx"

    # Port discovery
    DEVICE_SCAN_INTERVAL_MS = 1000  # How often the hotplug monitor polls
    UNKNOWN_PORT_LABEL = "(Unknown)"
    RFCOMM_NAME_PATTERN = r"rfcomm[0-9]"
    USB_SUBSYSTEMS = ("usb", "usb-serial")

    # Coordinator
    QUEUE_POLL_MS = 50
    QUEUE_MAX_PER_TICK = 100

    # GUI configuration
    WINDOW_MIN_WIDTH = 420
    WINDOW_MIN_HEIGHT = 320
    LOG_MAX_LINES = 1000

    @classmethod
    def get_gpsbabel_path(cls) -> str:
        """Get gpsbabel executable, honouring the environment override."""
        return os.environ.get(cls.GPSBABEL_ENV_VAR) or cls.GPSBABEL_PATH

    @classmethod
    def get_settings_file(cls) -> Path:
        """Get path of the persisted settings file."""
        return Path(cls.SETTINGS_FILE)

    @classmethod
    def get_descriptor_table_path(cls) -> Path:
        """Get path of the device/driver descriptor table."""
        return Path(cls.DESCRIPTOR_TABLE_PATH)


class _ConfigProxy:
    """
    Proxy exposing a `CONFIG` object API used across the codebase.

    - For most attributes, forwards to `Settings` class attributes.
    - Attributes assigned on the proxy shadow the class value (used by the
      command line to override the gpsbabel path).
    """

    APP_VERSION = Settings.VERSION

    def __getattr__(self, name):
        # Fallback: read any other attribute directly from Settings
        if hasattr(Settings, name):
            return getattr(Settings, name)
        raise AttributeError(f"CONFIG has no attribute '{name}'")

    def get_gpsbabel_path(self) -> str:
        override = self.__dict__.get("GPSBABEL_PATH")
        if override:
            return override
        return Settings.get_gpsbabel_path()

    def get_settings_file(self) -> Path:
        return Settings.get_settings_file()

    def get_descriptor_table_path(self) -> Path:
        return Settings.get_descriptor_table_path()


# Public instance
CONFIG = _ConfigProxy()
