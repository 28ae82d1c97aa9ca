"""
Device manager.

Owns the descriptor table and the current model/port selection, and builds
a driver when both are set.
"""
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from core.devices import (
    Capability,
    DescriptorTable,
    DeviceDescriptor,
    Port,
    PortType,
)
from core.drivers import Driver
from core.gpsbabel import GpsBabelDriver
from core.port_discovery import list_ports
from utils.logger import get_logger

# backend name -> driver class taking (device_id, port, capability, model_id=)
DRIVER_BACKENDS: Dict[str, Callable[..., Driver]] = {
    "gpsbabel": GpsBabelDriver,
}

PortLister = Callable[[Iterable[PortType]], List[Port]]


class DeviceManager:
    """
    Model/port selection on top of the descriptor table.

    Not thread safe; only the coordinator thread uses it.
    """

    def __init__(
        self,
        table: Optional[DescriptorTable] = None,
        table_path: Optional[Path] = None,
        port_lister: PortLister = list_ports
    ):
        self._logger = get_logger()
        self._table = table if table is not None else DescriptorTable.load(table_path)
        self._list_ports = port_lister
        self.model: Optional[str] = None
        self.port: Optional[str] = None

    @property
    def table(self) -> DescriptorTable:
        return self._table

    def devices(self) -> List[DeviceDescriptor]:
        return self._table.devices()

    def capability_for(self, model_id: str) -> Capability:
        return self._table.capability_for(model_id)

    def capability_for_known(self, model_id: str) -> Optional[Capability]:
        """Capability of a known model, or None."""
        desc = self._table.device(model_id)
        return desc.capability.copy() if desc else None

    def port_types_for(self, model_id: str) -> List[PortType]:
        return self._table.port_types_for(model_id)

    def ports_for_model(self, model_id: str) -> List[Port]:
        """Discover candidate ports for a model."""
        return self._list_ports(self.port_types_for(model_id))

    def set_model(self, model_id: str) -> None:
        if model_id != self.model:
            # ports belong to the previous model
            self.port = None
        self.model = model_id

    def set_port(self, port: str) -> None:
        self.port = port

    def clear_selection(self) -> None:
        self.model = None
        self.port = None

    def get_device(self) -> Optional[Driver]:
        """
        Build a driver for the current selection.

        Returns None unless both model and port are set and the model's
        driver resolves to a known backend. A new instance is built on
        each call.
        """
        if not self.model or not self.port:
            return None
        desc = self._table.device(self.model)
        if desc is None:
            return None
        driver_desc = self._table.driver(desc.driver_id)
        if driver_desc is None:
            self._logger.error("Devices", f"No driver '{desc.driver_id}' for {desc.id}")
            return None
        backend = DRIVER_BACKENDS.get(driver_desc.backend)
        if backend is None:
            self._logger.error("Devices", f"Unknown driver backend '{driver_desc.backend}'")
            return None
        return backend(desc.driver_id, self.port, desc.capability.copy(), model_id=desc.id)
