"""BLE scanning and parsing module."""

from .device import Device, DeviceError, InvalidDeviceIDError, PowerState
from .scanner import Scanner, ScannerState

__all__ = [
    "Device",
    "DeviceError",
    "InvalidDeviceIDError",
    "PowerState",
    "Scanner",
    "ScannerState",
]
