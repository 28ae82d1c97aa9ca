"""Utility modules for GPSAmi."""
from .logger import AppLogger, get_logger
from .persistence import SettingsStore

__all__ = ['AppLogger', 'get_logger', 'SettingsStore']
