"""Core functionality modules for GPSAmi."""
from .devices import Capability, DescriptorTable, DeviceDescriptor, DriverDescriptor, Port, PortType
from .drivers import Driver, Format, OperationResult, OperationStatus
from .gpsbabel import GpsBabelDriver
from .manager import DeviceManager
from .port_discovery import PortMonitor, list_ports
from .dispatcher import Dispatcher, UiState, View

__all__ = [
    'Capability', 'DescriptorTable', 'DeviceDescriptor', 'DriverDescriptor', 'Port', 'PortType',
    'Driver', 'Format', 'OperationResult', 'OperationStatus',
    'GpsBabelDriver',
    'DeviceManager',
    'PortMonitor', 'list_ports',
    'Dispatcher', 'UiState', 'View',
]
