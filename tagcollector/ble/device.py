"""Radio device abstraction the scanner binds to."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Protocol, Sequence, runtime_checkable

_MAC_RE = re.compile(r"^[0-9A-F]{2}([:-][0-9A-F]{2}){5}$")


class DeviceError(RuntimeError):
    """The radio device could not be opened or initialized."""


class InvalidDeviceIDError(ValueError):
    """A configured device id is neither a MAC address nor a UUID."""


class PowerState(Enum):
    """Radio power states reported through the state callback."""

    UNKNOWN = "unknown"
    RESETTING = "resetting"
    UNSUPPORTED = "unsupported"
    UNAUTHORIZED = "unauthorized"
    POWERED_OFF = "powered_off"
    POWERED_ON = "powered_on"


@dataclass(frozen=True)
class Peripheral:
    """A discovered BLE peripheral."""

    id: str
    name: str = ""


@dataclass(frozen=True)
class Advertisement:
    """Advertisement data relevant to sensor decoding.

    manufacturer_data holds the raw bytes as broadcast: the 2-byte
    little-endian company id followed by the vendor payload.
    """

    manufacturer_data: bytes = b""
    local_name: str = ""


StateChangedHandler = Callable[["Device", PowerState], None]
DiscoveryHandler = Callable[[Peripheral, Advertisement, int], Awaitable[None]]


@runtime_checkable
class Device(Protocol):
    """Radio handle: power-state notifications, discovery callbacks, scans."""

    def handle_peripheral_discovered(self, handler: DiscoveryHandler) -> None:
        ...

    async def init(self, on_state_changed: StateChangedHandler) -> None:
        ...

    def scan(self, device_ids: Sequence[str], allow_duplicates: bool) -> None:
        ...

    def stop_scanning(self) -> None:
        ...


def parse_device_id(device_id: str) -> str:
    """Normalize a device id to the form peripherals are reported with.

    Accepts MAC addresses (':' or '-' separated, any case) as used by
    BlueZ and Windows, and UUIDs as used by CoreBluetooth on macOS.
    """
    value = device_id.strip().upper()
    if _MAC_RE.match(value):
        return value.replace("-", ":")
    try:
        return str(uuid.UUID(value)).upper()
    except ValueError:
        raise InvalidDeviceIDError(f"Failed to parse RuuviTag ID {device_id!r}") from None
