"""Radio device backed by Bleak."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional, Sequence

from bleak import BleakScanner as BleakScannerLib
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from .device import (
    Advertisement,
    DeviceError,
    DiscoveryHandler,
    Peripheral,
    PowerState,
    StateChangedHandler,
)

logger = logging.getLogger(__name__)

IS_MACOS = sys.platform == "darwin"


def manufacturer_bytes(advertisement_data: AdvertisementData) -> bytes:
    """Rebuild raw manufacturer data: little-endian company id + payload.

    Bleak splits the company id off into the dict key; decoders expect
    the bytes as broadcast.
    """
    for company_id, payload in advertisement_data.manufacturer_data.items():
        return company_id.to_bytes(2, "little") + bytes(payload)
    return b""


async def _run_command(*args: str, timeout: float) -> tuple[int, str]:
    """Run a command without blocking the event loop.

    Returns the exit code and stripped stderr. Raises asyncio.TimeoutError
    after killing the process if it outlives the timeout.
    """
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise
    return proc.returncode, stderr.decode(errors="replace").strip()


class BleakDevice:
    """Bleak-backed radio device.

    Bleak has no power-state notifications, so state is inferred: a
    successful adapter probe reports POWERED_ON and a scan that cannot
    start reports POWERED_OFF.
    """

    # Timeout for scanner stop() - don't let it hang forever
    STOP_TIMEOUT_SECONDS = 10

    def __init__(self, adapter: Optional[str] = None) -> None:
        self._adapter = adapter
        self._on_discovered: Optional[DiscoveryHandler] = None
        self._on_state_changed: Optional[StateChangedHandler] = None
        self._scan_task: Optional[asyncio.Task] = None
        self._initialized = False

    def _create_scanner(self) -> BleakScannerLib:
        """Create a fresh scanner instance."""
        if self._adapter:
            return BleakScannerLib(adapter=self._adapter)
        return BleakScannerLib()

    async def _stop_scanner_safe(self, scanner: BleakScannerLib) -> None:
        """Stop scanner with timeout protection."""
        try:
            await asyncio.wait_for(scanner.stop(), timeout=self.STOP_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("Scanner stop() timed out after %ds", self.STOP_TIMEOUT_SECONDS)
        except (BleakError, OSError) as e:
            logger.debug("Error stopping scanner: %s", e)

    async def _reset_bluetooth_adapter(self) -> None:
        """Reset Bluetooth adapter to recover from stuck state.

        Uses bluetoothctl (D-Bus) which works without sudo when user
        is in bluetooth group, or hciconfig with CAP_NET_ADMIN.
        Skipped on macOS where Core Bluetooth manages the adapter.
        """
        if IS_MACOS:
            logger.debug("Skipping adapter reset on macOS")
            return

        try:
            await _run_command("bluetoothctl", "power", "off", timeout=5)
            await asyncio.sleep(1)
            await _run_command("bluetoothctl", "power", "on", timeout=5)
            await asyncio.sleep(2)
            logger.info("Bluetooth adapter power cycled via bluetoothctl")
            return
        except (asyncio.TimeoutError, OSError) as e:
            logger.debug("bluetoothctl failed: %r", e)

        # Fallback to hciconfig (requires CAP_NET_ADMIN or sudo)
        try:
            returncode, stderr = await _run_command(
                "hciconfig", self._adapter or "hci0", "reset", timeout=10
            )
            if returncode == 0:
                logger.info("Bluetooth adapter reset via hciconfig")
                await asyncio.sleep(2)
            else:
                logger.debug("hciconfig reset failed: %s", stderr)
        except (asyncio.TimeoutError, OSError) as e:
            logger.debug("hciconfig failed: %r", e)

    def handle_peripheral_discovered(self, handler: DiscoveryHandler) -> None:
        """Register the coroutine called once per received advertisement."""
        self._on_discovered = handler

    async def init(self, on_state_changed: StateChangedHandler) -> None:
        """Probe the adapter and report its power state.

        Re-initialization power cycles the adapter first. Raises
        DeviceError if the adapter cannot scan.
        """
        if self._initialized:
            await self._reset_bluetooth_adapter()

        scanner = self._create_scanner()
        try:
            await scanner.start()
        except (BleakError, OSError) as e:
            raise DeviceError(f"Bluetooth adapter unavailable: {e}") from e
        await self._stop_scanner_safe(scanner)

        self._on_state_changed = on_state_changed
        self._initialized = True
        logger.debug("Bluetooth adapter %s ready", self._adapter or "(default)")
        asyncio.get_running_loop().call_soon(on_state_changed, self, PowerState.POWERED_ON)

    def scan(self, device_ids: Sequence[str], allow_duplicates: bool) -> None:
        """Start a scan window, replacing any scan already running."""
        self.stop_scanning()
        self._scan_task = asyncio.create_task(
            self._scan_window(frozenset(device_ids), allow_duplicates),
            name="ble_scan_window",
        )

    def stop_scanning(self) -> None:
        """Cancel the running scan window, if any."""
        if self._scan_task and not self._scan_task.done():
            self._scan_task.cancel()
        self._scan_task = None

    async def _scan_window(self, device_ids: frozenset[str], allow_duplicates: bool) -> None:
        """Scan until cancelled, handing each advertisement to the handler."""
        scanner = self._create_scanner()
        try:
            await scanner.start()
        except (BleakError, OSError) as e:
            logger.warning("BLE scan failed to start: %s", e)
            if self._on_state_changed:
                self._on_state_changed(self, PowerState.POWERED_OFF)
            return

        seen: set[str] = set()
        try:
            async for device, advertisement_data in scanner.advertisement_data():
                address = device.address.upper()
                if device_ids and address not in device_ids:
                    continue
                if not allow_duplicates:
                    if address in seen:
                        continue
                    seen.add(address)
                if self._on_discovered is None:
                    continue

                local_name = advertisement_data.local_name or ""
                await self._on_discovered(
                    Peripheral(id=address, name=device.name or local_name),
                    Advertisement(
                        manufacturer_data=manufacturer_bytes(advertisement_data),
                        local_name=local_name,
                    ),
                    advertisement_data.rssi,
                )
        finally:
            await self._stop_scanner_safe(scanner)
