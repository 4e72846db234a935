"""BLE scanner that decodes RuuviTag advertisements and fans readings out to exporters."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Coroutine, Optional, Sequence

from ..exporter.base import Exporter
from ..models import AppConfig, SensorReading
from .bleak_device import BleakDevice
from .device import (
    Advertisement,
    Device,
    Peripheral,
    PowerState,
    parse_device_id,
)
from .parsers import BaseParser, ParseError, RuuviParser

logger = logging.getLogger(__name__)

DeviceFactory = Callable[[], Device]


class ScannerState(Enum):
    """Scanner lifecycle states."""

    CREATED = "created"
    STARTED = "started"
    POWERED_ON = "powered_on"
    POWERED_OFF = "powered_off"
    STOPPED = "stopped"


async def _wait_any(
    events: Sequence[asyncio.Event],
    timeout: Optional[float] = None,
) -> Optional[asyncio.Event]:
    """Wait until one of the events is set.

    Returns the first set event in the given order, or None on timeout.
    """
    waiters = [asyncio.create_task(event.wait()) for event in events]
    try:
        await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()

    for event in events:
        if event.is_set():
            return event
    return None


class Scanner:
    """Discovers RuuviTags and delivers every decoded reading to each exporter.

    Discovery and export run as separate tasks connected by a queue of
    size one: a slow export loop makes discovery handlers wait on put().
    """

    READINGS_QUEUE_SIZE = 1

    def __init__(
        self,
        config: AppConfig,
        exporters: Sequence[Exporter] = (),
        device_factory: Optional[DeviceFactory] = None,
        parser: Optional[BaseParser] = None,
    ) -> None:
        self.sleep_interval = config.reporting_interval
        self.export_timeout = config.export_timeout
        self.exporters: tuple[Exporter, ...] = tuple(exporters)
        self._device_factory = device_factory or BleakDevice
        self._parser = parser or RuuviParser()

        self._device_ids: list[str] = []
        self._device_names: dict[str, str] = {}
        for tag in config.ruuvitags:
            device_id = parse_device_id(tag.id)
            if device_id not in self._device_names:
                self._device_ids.append(device_id)
            self._device_names[device_id] = tag.name

        self._readings: asyncio.Queue[SensorReading] = asyncio.Queue(
            maxsize=self.READINGS_QUEUE_SIZE,
        )
        self._quit = asyncio.Event()
        self._stop_scan: Optional[asyncio.Event] = None
        self._state = ScannerState.CREATED
        self._device: Optional[Device] = None
        self._tasks: set[asyncio.Task] = set()

        if self._device_ids:
            logger.info("Reading from RuuviTags %s", ", ".join(self._device_ids))
        else:
            logger.info("Reading from all nearby BLE devices")

    @property
    def state(self) -> ScannerState:
        """Current lifecycle state."""
        return self._state

    @property
    def device_ids(self) -> tuple[str, ...]:
        """Device ids scans are restricted to; empty means any device."""
        return tuple(self._device_ids)

    def device_name(self, device_id: str) -> str:
        """Configured display name for a device, or an empty string."""
        return self._device_names.get(device_id.upper(), "")

    def _spawn(self, coro: Coroutine, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error("Scanner task %s failed: %s", task.get_name(), exc)

    async def start(self) -> None:
        """Open and initialize the device, then start the export loop.

        Raises DeviceError if the device cannot be opened or initialized;
        no background task is started in that case.
        """
        if self._state is not ScannerState.CREATED:
            raise RuntimeError(f"Scanner cannot start in state {self._state.value}")

        logger.info("Starting scanner...")
        device = self._device_factory()
        device.handle_peripheral_discovered(self._on_peripheral_discovered)
        await device.init(self._on_state_changed)

        self._device = device
        if self._state is ScannerState.CREATED:
            self._state = ScannerState.STARTED
        self._spawn(self._export_readings(), name="export_readings")
        logger.info("Scanner started")

    def stop(self) -> None:
        """Signal the scan and export loops to quit.

        Does not wait for them; use join() for that.
        """
        if self._quit.is_set():
            return

        logger.info("Stopping scanner...")
        self._quit.set()
        self._stop_scan = None
        self._state = ScannerState.STOPPED

    async def join(self, timeout: Optional[float] = None) -> None:
        """Wait for background tasks to finish after stop()."""
        tasks = list(self._tasks)
        if not tasks:
            return
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning("%d scanner task(s) still running after stop", len(pending))

    def _signal_stop_scan(self) -> None:
        if self._stop_scan is not None:
            self._stop_scan.set()
            self._stop_scan = None

    def _scan(self, device: Device) -> None:
        logger.debug("Scanner scanning devices %s", self._device_ids or "(all)")
        device.scan(self._device_ids, False)

    async def _begin_scan(self, device: Device, stop_scan: asyncio.Event) -> None:
        """Scan now and then on every interval tick until stopped."""
        logger.info("Scanner starting")
        self._scan(device)

        loop = asyncio.get_running_loop()
        next_scan = loop.time() + self.sleep_interval
        while True:
            signal = await _wait_any(
                (self._quit, stop_scan),
                timeout=max(0.0, next_scan - loop.time()),
            )
            if signal is None:
                # Missed ticks are dropped, not replayed
                now = loop.time()
                while next_scan <= now:
                    next_scan += self.sleep_interval
                self._scan(device)
            elif signal is self._quit:
                logger.info("Scanner quitting")
                device.stop_scanning()
                return
            else:
                logger.info("Scanner stopping")
                return

    def _on_state_changed(self, device: Device, state: PowerState) -> None:
        """React to a power-state notification from the device."""
        if self._quit.is_set():
            logger.debug("Ignoring device state %s after stop", state.value)
            return

        if state is PowerState.POWERED_ON:
            logger.info("Device powered on")
            self._state = ScannerState.POWERED_ON
            self._signal_stop_scan()
            self._stop_scan = asyncio.Event()
            self._spawn(self._begin_scan(device, self._stop_scan), name="scan_loop")
        elif state is PowerState.POWERED_OFF:
            logger.info("Device powered off")
            self._state = ScannerState.POWERED_OFF
            self._signal_stop_scan()
            device.stop_scanning()
            self._spawn(self._restart_device(device), name="device_restart")
        else:
            logger.warning("Unhandled state: %s", state.value)

    async def _restart_device(self, device: Device) -> None:
        """Try once to bring the device back after a power-off."""
        try:
            await device.init(self._on_state_changed)
        except Exception as e:
            logger.error("Failed to restart device: %s", e)
        else:
            logger.info("Device re-initialized, waiting for power on")

    async def _on_peripheral_discovered(
        self,
        peripheral: Peripheral,
        advertisement: Advertisement,
        rssi: int,
    ) -> None:
        """Decode one advertisement and queue the reading for export."""
        if self._quit.is_set():
            return

        logger.debug("Read sensor data from device %s:%s", peripheral.id, peripheral.name)
        data = advertisement.manufacturer_data
        try:
            reading = self._parser.parse(data)
        except ParseError as e:
            logger.warning(
                "Error while parsing RuuviTag data (%d bytes) %s: %s",
                len(data),
                bytes(data[:3]).hex(),
                e,
            )
            return

        device_id = peripheral.id.upper()
        reading = replace(
            reading,
            mac=device_id,
            name=self._device_names.get(device_id, ""),
            rssi=rssi,
            timestamp=datetime.now(timezone.utc),
        )
        await self._readings.put(reading)

    async def _export_readings(self) -> None:
        """Hand each queued reading to every exporter until quit."""
        quit_waiter = asyncio.create_task(self._quit.wait())
        getter: Optional[asyncio.Task] = None
        try:
            while True:
                getter = asyncio.create_task(self._readings.get())
                await asyncio.wait({getter, quit_waiter}, return_when=asyncio.FIRST_COMPLETED)
                if self._quit.is_set():
                    break
                await self._export(getter.result())
        finally:
            quit_waiter.cancel()
            if getter is not None:
                getter.cancel()
        logger.info("Export loop quitting")

    async def _export(self, reading: SensorReading) -> None:
        logger.info("Received measurement from sensor %s", reading.name or reading.mac)
        for exporter in self.exporters:
            logger.debug("Exporting measurement to %s", exporter.name)
            try:
                await asyncio.wait_for(exporter.export(reading), timeout=self.export_timeout)
            except asyncio.TimeoutError:
                logger.error(
                    "Export to %s timed out after %.1fs",
                    exporter.name,
                    self.export_timeout,
                )
            except Exception as e:
                logger.error("Failed to export measurement to %s: %s", exporter.name, e)
