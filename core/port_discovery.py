"""
Serial port discovery for GPS loggers.

Lists host serial devices that may host the selected model (USB serial
adapters or Bluetooth RFCOMM nodes), and watches for devices being
attached or removed.
"""
import re
import threading
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional

import serial.tools.list_ports

from config.settings import CONFIG
from core.devices import Port, PortType
from utils.logger import get_logger

_RFCOMM_RE = re.compile(CONFIG.RFCOMM_NAME_PATTERN)


def _is_usb_serial(info) -> bool:
    subsystem = getattr(info, "subsystem", None)
    if subsystem is not None:
        return subsystem in CONFIG.USB_SUBSYSTEMS
    # Backends without sysfs only report USB ids
    return info.vid is not None


def _is_rfcomm(info) -> bool:
    return bool(_RFCOMM_RE.fullmatch(info.name or ""))


_FILTERS = {
    PortType.USB_SERIAL: _is_usb_serial,
    PortType.RFCOMM: _is_rfcomm,
}


def port_label(info) -> str:
    """Human readable model string of a port, or the unknown placeholder."""
    parts = [p for p in (info.manufacturer, info.product) if p]
    if parts:
        return " ".join(parts)
    return CONFIG.UNKNOWN_PORT_LABEL


def _scan(port_type: PortType) -> List[Port]:
    """One enumeration pass for a single port type."""
    match = _FILTERS.get(port_type)
    if match is None:
        # PortType.NONE must match nothing
        return []

    ports: List[Port] = []
    for info in serial.tools.list_ports.comports():
        if not match(info):
            continue
        ports.append(Port(
            id=info.device,
            label=port_label(info),
            path=Path(info.device),
        ))
    return ports


def list_ports(port_types: Iterable[PortType]) -> List[Port]:
    """
    List candidate ports for the requested port types.

    Results are concatenated in request order without de-duplication.
    A failing enumeration pass contributes no ports; the failure is logged
    so it can be told apart from an empty result.

    Args:
        port_types: Port types in filter-application order

    Returns:
        Freshly built list of Port
    """
    logger = get_logger()
    ports: List[Port] = []
    for port_type in port_types:
        try:
            found = _scan(port_type)
        except Exception as e:
            logger.warning("PortDiscovery", f"Enumeration failed for {port_type.value}: {e}")
            continue
        logger.debug("PortDiscovery", f"{port_type.value}: {len(found)} port(s)")
        ports.extend(found)
    return ports


class PortMonitor:
    """
    Polls the host serial devices and notifies when the set changes.

    The callback is invoked from the monitor thread.
    """

    def __init__(
        self,
        on_changed: Optional[Callable[[], None]] = None,
        interval: Optional[float] = None
    ):
        self._logger = get_logger()
        self._on_changed = on_changed
        self._interval = interval if interval is not None else CONFIG.DEVICE_SCAN_INTERVAL_MS / 1000.0
        self._known: FrozenSet[str] = frozenset()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start device monitoring thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._known = self._snapshot()
        self._thread = threading.Thread(target=self._monitor_loop, name="port-monitor", daemon=True)
        self._thread.start()
        self._logger.info("PortMonitor", "Started device monitoring")

    def stop(self) -> None:
        """Stop device monitoring thread."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        self._logger.info("PortMonitor", "Stopped device monitoring")

    def _snapshot(self) -> FrozenSet[str]:
        return frozenset(p.device for p in serial.tools.list_ports.comports())

    def poll(self) -> bool:
        """Compare with the previous snapshot. Returns True if devices changed."""
        current = self._snapshot()
        added = current - self._known
        removed = self._known - current
        self._known = current
        if not (added or removed):
            return False

        for dev in sorted(added):
            self._logger.debug("PortMonitor", f"Device added: {dev}")
        for dev in sorted(removed):
            self._logger.debug("PortMonitor", f"Device removed: {dev}")
        if self._on_changed:
            self._on_changed()
        return True

    def _monitor_loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll()
            except Exception as e:
                self._logger.error("PortMonitor", f"Scan error: {e}")
            self._stop.wait(self._interval)
