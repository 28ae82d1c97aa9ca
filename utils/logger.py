"""
Centralized logging for GPSAmi.

Provides both file and GUI-compatible logging. Entries may be produced from
worker threads; the GUI callback is responsible for marshalling them back to
the Tk thread.
"""
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Callable, List
from dataclasses import dataclass

from config.settings import CONFIG


@dataclass
class LogEntry:
    """Single log entry with metadata."""
    timestamp: datetime
    level: str
    source: str
    message: str

    def format(self) -> str:
        """Format entry for display."""
        ts = self.timestamp.strftime("%H:%M:%S.%f")[:-3]
        return f"[{ts}] [{self.level}] [{self.source}] {self.message}"


class AppLogger:
    """
    Application logger with GUI callback support.

    Manages both file logging and real-time GUI updates.
    """

    def __init__(self, name: str = "gpsami", max_entries: int = 1000):
        self.name = name
        self.max_entries = max_entries
        self.entries: List[LogEntry] = []
        self._gui_callback: Optional[Callable[[LogEntry], None]] = None
        self._file_handler: Optional[logging.FileHandler] = None

        # Setup standard Python logger
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)
        # Prevent propagation to root to avoid duplicate outputs
        self._logger.propagate = False

        # Add a single console handler only once per process
        self._console = getattr(self._logger, "_gpsami_console", None)
        if self._console is None:
            self._console = logging.StreamHandler(sys.stdout)
            self._console.setLevel(logging.INFO)
            self._console.setFormatter(logging.Formatter(
                '%(asctime)s [%(levelname)s] %(message)s',
                datefmt='%H:%M:%S'
            ))
            self._logger.addHandler(self._console)
            setattr(self._logger, "_gpsami_console", self._console)

    def set_gui_callback(self, callback: Optional[Callable[[LogEntry], None]]) -> None:
        """Set callback for GUI log updates."""
        self._gui_callback = callback

    def set_console_level(self, level: int) -> None:
        """Change the console verbosity (e.g. logging.DEBUG for --debug)."""
        self._console.setLevel(level)

    def set_file_log(self, path: Path) -> None:
        """Enable file logging to specified path."""
        if self._file_handler:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()

        path.parent.mkdir(parents=True, exist_ok=True)
        self._file_handler = logging.FileHandler(path, encoding='utf-8')
        self._file_handler.setLevel(logging.DEBUG)
        self._file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] [%(name)s] %(message)s'
        ))
        self._logger.addHandler(self._file_handler)

    def _log(self, level: str, source: str, message: str) -> None:
        """Internal logging method."""
        entry = LogEntry(
            timestamp=datetime.now(),
            level=level,
            source=source,
            message=message
        )
        self.entries.append(entry)
        if len(self.entries) > self.max_entries:
            del self.entries[:len(self.entries) - self.max_entries]

        # SUCCESS has no stdlib level
        log_func = getattr(self._logger, level.lower(), self._logger.info)
        log_func(f"[{source}] {message}")

        if self._gui_callback:
            self._gui_callback(entry)

    def debug(self, message_or_source: str, message: Optional[str] = None) -> None:
        """Log debug message. Accepts (source, message) or (message)."""
        if message is None:
            self._log("DEBUG", "App", message_or_source)
        else:
            self._log("DEBUG", message_or_source, message)

    def info(self, message_or_source: str, message: Optional[str] = None) -> None:
        """Log info message. Accepts (source, message) or (message)."""
        if message is None:
            self._log("INFO", "App", message_or_source)
        else:
            self._log("INFO", message_or_source, message)

    def warning(self, message_or_source: str, message: Optional[str] = None) -> None:
        """Log warning message. Accepts (source, message) or (message)."""
        if message is None:
            self._log("WARNING", "App", message_or_source)
        else:
            self._log("WARNING", message_or_source, message)

    def error(self, message_or_source: str, message: Optional[str] = None) -> None:
        """Log error message. Accepts (source, message) or (message)."""
        if message is None:
            self._log("ERROR", "App", message_or_source)
        else:
            self._log("ERROR", message_or_source, message)

    def success(self, message_or_source: str, message: Optional[str] = None) -> None:
        """Log success message (info level with SUCCESS tag). Accepts (source, message) or (message)."""
        if message is None:
            self._log("SUCCESS", "App", message_or_source)
        else:
            self._log("SUCCESS", message_or_source, message)

    def get_entries(self, source: Optional[str] = None) -> List[LogEntry]:
        """Get log entries, optionally filtered by source."""
        if source:
            return [e for e in self.entries if e.source == source]
        return self.entries.copy()

    def clear(self) -> None:
        """Clear log entries."""
        self.entries.clear()


# Global logger instance
_logger: Optional[AppLogger] = None


def get_logger() -> AppLogger:
    """Get or create global logger instance."""
    global _logger
    if _logger is None:
        _logger = AppLogger(max_entries=CONFIG.LOG_MAX_LINES)
    return _logger
