"""
Device and driver descriptor model.

The descriptor table lists every supported GPS logger model, its capability
flags and the driver that talks to it. It is loaded once and never mutated.
"""
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from config.settings import CONFIG
from utils.logger import get_logger


class DescriptorError(ValueError):
    """Raised when the descriptor table is malformed."""


class PortType(Enum):
    """Category of host device node a driver's devices may appear under."""
    NONE = "None"
    USB_SERIAL = "UsbSerial"
    RFCOMM = "RfComm"  # Bluetooth serial


@dataclass(frozen=True)
class Capability:
    """Static capability of a device model."""
    can_erase: bool = False       # download-with-erase
    can_erase_only: bool = False  # standalone erase
    can_log_enable: bool = False
    can_shutoff: bool = False

    def copy(self) -> "Capability":
        return replace(self)


@dataclass(frozen=True)
class DeviceDescriptor:
    """One supported device model."""
    id: str
    label: str
    capability: Capability
    driver_id: str


@dataclass(frozen=True)
class DriverDescriptor:
    """A driver and the port types its devices appear under, in filter order."""
    id: str
    supported_port_types: Tuple[PortType, ...] = field(default_factory=tuple)
    backend: str = "gpsbabel"


@dataclass
class Port:
    """A candidate host device node for the selected model."""
    id: str
    label: str
    path: Path

    def __str__(self) -> str:
        return f"{self.path} ({self.label})"


def _parse_port_type(name: str) -> PortType:
    try:
        return PortType(name)
    except ValueError:
        raise DescriptorError(f"Unknown port type '{name}'") from None


def _parse_capability(data: Dict) -> Capability:
    return Capability(
        can_erase=bool(data.get("can_erase", False)),
        can_erase_only=bool(data.get("can_erase_only", False)),
        can_log_enable=bool(data.get("can_log_enable", False)),
        can_shutoff=bool(data.get("can_shutoff", False)),
    )


class DescriptorTable:
    """
    Read-only table of device and driver descriptors.

    Lookups never fail: unknown models get the all-false Capability and
    the [PortType.NONE] port list.
    """

    def __init__(
        self,
        devices: List[DeviceDescriptor],
        drivers: List[DriverDescriptor]
    ):
        self._devices: Dict[str, DeviceDescriptor] = {}
        for desc in devices:
            if desc.id in self._devices:
                raise DescriptorError(f"Duplicate device id '{desc.id}'")
            self._devices[desc.id] = desc
        self._drivers: Dict[str, DriverDescriptor] = {d.id: d for d in drivers}

    @classmethod
    def from_dict(cls, data: Dict) -> "DescriptorTable":
        """Build a table from the parsed JSON document."""
        try:
            devices = [
                DeviceDescriptor(
                    id=entry["id"],
                    label=entry.get("label", entry["id"]),
                    capability=_parse_capability(entry.get("capability", {})),
                    driver_id=entry["driver"],
                )
                for entry in data.get("devices", [])
            ]
            drivers = [
                DriverDescriptor(
                    id=entry["id"],
                    supported_port_types=tuple(
                        _parse_port_type(p) for p in entry.get("ports", [])
                    ),
                    backend=entry.get("backend", "gpsbabel"),
                )
                for entry in data.get("drivers", [])
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise DescriptorError(f"Malformed descriptor table: {e}") from e
        return cls(devices, drivers)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "DescriptorTable":
        """Load the table from a JSON file (the packaged one by default)."""
        path = Path(path) if path else CONFIG.get_descriptor_table_path()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DescriptorError(f"Cannot read descriptor table {path}: {e}") from e
        table = cls.from_dict(data)
        get_logger().debug(
            "Devices",
            f"Loaded {len(table._devices)} devices, {len(table._drivers)} drivers from {path}"
        )
        return table

    def devices(self) -> List[DeviceDescriptor]:
        """Descriptors in load order."""
        return list(self._devices.values())

    def device(self, model_id: str) -> Optional[DeviceDescriptor]:
        if not model_id:
            return None
        return self._devices.get(model_id)

    def driver(self, driver_id: str) -> Optional[DriverDescriptor]:
        return self._drivers.get(driver_id)

    def capability_for(self, model_id: str) -> Capability:
        """Capability of the model, or the all-false default."""
        desc = self.device(model_id)
        if desc is None:
            return Capability()
        return desc.capability.copy()

    def port_types_for(self, model_id: str) -> List[PortType]:
        """Port types of the model's driver, or [PortType.NONE] if unresolvable."""
        desc = self.device(model_id)
        if desc is None:
            return [PortType.NONE]
        driver = self.driver(desc.driver_id)
        if driver is None:
            return [PortType.NONE]
        return list(driver.supported_port_types)
