"""GUI modules for GPSAmi."""
from .main_window import MainWindow
from .log_panel import LogPanel

__all__ = [
    'MainWindow',
    'LogPanel'
]
