"""Configuration for GPSAmi."""
from .settings import CONFIG, Settings

__all__ = ['CONFIG', 'Settings']
