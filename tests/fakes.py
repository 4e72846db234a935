"""Test doubles for the radio device and exporters."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from tagcollector.ble.device import (
    Advertisement,
    DeviceError,
    Peripheral,
    PowerState,
)
from tagcollector.exporter.base import Exporter, NoMeasurementsError
from tagcollector.models import AppConfig, SensorReading, TagConfig

# Official RuuviTag test vectors, prefixed with the 0x0499 company id
DF5_VALID = bytes.fromhex("9904" "0512FC5394C37C0004FFFC040CAC364200CDCBB8334C884F")
DF5_INVALID = bytes.fromhex("9904" "058000FFFFFFFF800080008000FFFFFFFFFFFFFFFFFFFFFF")
DF3_VALID = bytes.fromhex("9904" "03291A1ECE1EFC18F94202CA0B53")


class FakeDevice:
    """In-memory Device: records scans, lets tests drive callbacks."""

    def __init__(
        self,
        fail_init_calls: Optional[set[int]] = None,
        power_on_init_calls: Optional[set[int]] = None,
    ) -> None:
        # init call numbers (1-based) that raise / that report POWERED_ON
        self._fail_init_calls = fail_init_calls or set()
        self._power_on_init_calls = power_on_init_calls
        self.init_calls = 0
        self.scans: list[tuple[list[str], bool]] = []
        self.stop_scanning_calls = 0
        self.handler = None
        self.on_state_changed = None

    def handle_peripheral_discovered(self, handler) -> None:
        self.handler = handler

    async def init(self, on_state_changed) -> None:
        self.init_calls += 1
        if self.init_calls in self._fail_init_calls:
            raise DeviceError("adapter not found")
        self.on_state_changed = on_state_changed
        if self._power_on_init_calls is None or self.init_calls in self._power_on_init_calls:
            asyncio.get_running_loop().call_soon(on_state_changed, self, PowerState.POWERED_ON)

    def scan(self, device_ids, allow_duplicates: bool) -> None:
        self.scans.append((list(device_ids), allow_duplicates))

    def stop_scanning(self) -> None:
        self.stop_scanning_calls += 1

    def set_state(self, state: PowerState) -> None:
        self.on_state_changed(self, state)

    async def discover(self, device_id: str, data: bytes, rssi: int = -60, name: str = "") -> None:
        await self.handler(
            Peripheral(id=device_id, name=name),
            Advertisement(manufacturer_data=data),
            rssi,
        )


class RecordingExporter(Exporter):
    """Records every export call; optionally fails, stalls or waits on a gate."""

    def __init__(
        self,
        name: str,
        fail: bool = False,
        delay: float = 0.0,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self._name = name
        self._fail = fail
        self._delay = delay
        self._gate = gate
        self.calls: list[tuple[SensorReading, ...]] = []
        self.completed = 0
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def readings(self) -> list[SensorReading]:
        return [r for call in self.calls for r in call]

    async def export(self, *readings: SensorReading) -> None:
        if not readings:
            raise NoMeasurementsError()
        self.calls.append(readings)
        if self._gate is not None:
            await self._gate.wait()
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail:
            raise RuntimeError(f"{self._name} is unavailable")
        self.completed += 1

    async def close(self) -> None:
        self.closed = True


def make_config(*tags: tuple[str, str], interval: float = 60.0, export_timeout=None) -> AppConfig:
    return AppConfig(
        reporting_interval=interval,
        export_timeout=export_timeout,
        ruuvitags=[TagConfig(id=tag_id, name=name) for tag_id, name in tags],
    )


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll predicate until it holds or fail after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
