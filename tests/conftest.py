"""Shared pytest fixtures for GPSAmi tests."""

from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional

import pytest

from core.devices import DescriptorTable, Port, PortType
from core.dispatcher import Dispatcher, View
from core.manager import DeviceManager
from utils.persistence import SettingsStore


TABLE = {
    "devices": [
        {
            "id": "holux",
            "label": "Holux M-241",
            "driver": "m241",
            "capability": {"can_erase": False, "can_erase_only": True},
        },
        {
            "id": "mtk",
            "label": "MTK logger",
            "driver": "mtk",
            "capability": {
                "can_erase": True,
                "can_erase_only": True,
                "can_log_enable": True,
            },
        },
        {
            "id": "orphan",
            "label": "No driver",
            "driver": "missing",
        },
    ],
    "drivers": [
        {"id": "m241", "backend": "gpsbabel", "ports": ["UsbSerial"]},
        {"id": "mtk", "backend": "gpsbabel", "ports": ["UsbSerial", "RfComm"]},
    ],
}


def comport(device, subsystem=None, vid=None, manufacturer=None, product=None):
    """Stand-in for serial.tools.list_ports_common.ListPortInfo."""
    return SimpleNamespace(
        device=device,
        name=Path(device).name,
        subsystem=subsystem,
        vid=vid,
        manufacturer=manufacturer,
        product=product,
    )


class FakePortLister:
    """Records the port types requested and returns canned ports."""

    def __init__(self, ports: Optional[List[Port]] = None):
        self.ports = ports if ports is not None else [
            Port(id="/dev/ttyUSB0", label="Prolific PL2303", path=Path("/dev/ttyUSB0")),
        ]
        self.calls: List[List[PortType]] = []

    def __call__(self, port_types):
        port_types = list(port_types)
        self.calls.append(port_types)
        if port_types == [PortType.NONE]:
            return []
        return list(self.ports)


class RecordingView(View):
    """View that records what the dispatcher asks of it."""

    def __init__(self, output_file: Optional[Path] = None, erase_after: bool = False):
        self.output_file = output_file
        self.erase_after = erase_after
        self.models = []
        self.ports = []
        self.selected_model = None
        self.selected_port = None
        self.capabilities = []
        self.download_enabled = None
        self.busy = []
        self.asked_dirs = []
        self.notifications = []
        self.errors = []

    def set_models(self, devices):
        self.models = list(devices)

    def select_model(self, model_id):
        self.selected_model = model_id

    def set_ports(self, ports):
        self.ports = list(ports)

    def select_port(self, port_id):
        self.selected_port = port_id

    def update_capability(self, capability):
        self.capabilities.append(capability)

    def set_download_enabled(self, enabled):
        self.download_enabled = enabled

    def set_busy(self, busy):
        self.busy.append(busy)

    def ask_output_file(self, initial_dir):
        self.asked_dirs.append(initial_dir)
        return self.output_file

    def erase_after_download(self):
        return self.erase_after

    def notify(self, message):
        self.notifications.append(message)

    def report_error(self, headline, detail):
        self.errors.append((headline, detail))


@pytest.fixture
def table():
    return DescriptorTable.from_dict(TABLE)


@pytest.fixture
def port_lister():
    return FakePortLister()


@pytest.fixture
def manager(table, port_lister):
    return DeviceManager(table=table, port_lister=port_lister)


@pytest.fixture
def settings(tmp_path):
    return SettingsStore(tmp_path / "gpsami.json")


@pytest.fixture
def view(tmp_path):
    return RecordingView(output_file=tmp_path / "track.gpx")


@pytest.fixture
def dispatcher(manager, settings, view):
    return Dispatcher(manager, settings, view)
