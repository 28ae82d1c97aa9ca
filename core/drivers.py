"""
Driver abstraction for GPS loggers.

A driver talks to one device model on one port. Download and erase are
blocking; callers run them off the coordinator thread. Operations report
their outcome with an OperationResult rather than raising.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class Format(Enum):
    """Track log output format."""
    NONE = "none"
    GPX = "gpx"
    KML = "kml"

    @classmethod
    def from_path(cls, path: Union[str, Path], default: Optional["Format"] = None) -> "Format":
        """Pick the format matching a destination file suffix."""
        suffix = Path(path).suffix.lower().lstrip(".")
        for fmt in (cls.GPX, cls.KML):
            if fmt.value == suffix:
                return fmt
        return default if default is not None else cls.GPX


class OperationStatus(Enum):
    """Outcome kind of a device operation."""
    SUCCESS = "success"
    UNSUPPORTED = "unsupported"  # Not permitted by device capability
    NO_DRIVER = "no_driver"      # No driver for the model/port selection
    CANCELLED = "cancelled"      # User aborted destination selection
    WRONG_ARG = "wrong_arg"      # Invalid format requested
    FAILED = "failed"            # Tool ran and reported failure
    IO_ERROR = "io_error"        # Spawn, wait or filesystem failure


@dataclass
class OperationResult:
    """Result of a download or erase operation."""
    status: OperationStatus
    message: str = ""
    output_path: Optional[Path] = None
    error: Optional[OSError] = None

    @property
    def success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def is_quiet(self) -> bool:
        """Success and cancellation are not reported as errors."""
        return self.status in (OperationStatus.SUCCESS, OperationStatus.CANCELLED)

    def __str__(self) -> str:
        return self.message

    @classmethod
    def ok(cls, output_path: Optional[Path] = None) -> "OperationResult":
        return cls(OperationStatus.SUCCESS, "Success", output_path=output_path)

    @classmethod
    def unsupported(cls) -> "OperationResult":
        return cls(OperationStatus.UNSUPPORTED, "Unsupported")

    @classmethod
    def no_driver(cls) -> "OperationResult":
        return cls(OperationStatus.NO_DRIVER, "No driver")

    @classmethod
    def cancelled(cls) -> "OperationResult":
        return cls(OperationStatus.CANCELLED, "Cancelled")

    @classmethod
    def wrong_arg(cls) -> "OperationResult":
        return cls(OperationStatus.WRONG_ARG, "Incorrect argument")

    @classmethod
    def failed(cls, message: str) -> "OperationResult":
        return cls(OperationStatus.FAILED, f"Failed: {message}")

    @classmethod
    def io_error(cls, error: OSError) -> "OperationResult":
        return cls(OperationStatus.IO_ERROR, f"IO error {error}", error=error)


class Driver(ABC):
    """
    Contract implemented once per backing technology.

    open/close only report readiness. download/erase enforce the device
    capability themselves and return UNSUPPORTED when it disallows the request.
    """

    @abstractmethod
    def open(self) -> bool:
        """Open the device."""

    @abstractmethod
    def close(self) -> bool:
        """Close the device."""

    @abstractmethod
    def download(self, fmt: Format, erase_after: bool, tempdir: Path) -> OperationResult:
        """
        Download the track logs in the specified format into tempdir.

        Returns:
            OperationResult whose output_path points at the produced file.
            The file lives in tempdir and is removed with it.
        """

    @abstractmethod
    def erase(self) -> OperationResult:
        """Erase the track logs on the device."""

