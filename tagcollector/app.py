"""Main application coordinator."""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path
from typing import Optional

from .ble.scanner import DeviceFactory, Scanner
from .config import load_config
from .exporter import Exporter, build_exporters
from .models import AppConfig

logger = logging.getLogger(__name__)


class CollectorApp:
    """Main application that wires the scanner to the configured exporters."""

    # How long shutdown waits for the scan and export loops
    STOP_TIMEOUT_SECONDS = 10

    def __init__(
        self,
        config_path: Path,
        device_factory: Optional[DeviceFactory] = None,
    ) -> None:
        self._config_path = config_path
        self._device_factory = device_factory
        self._config: Optional[AppConfig] = None
        self._exporters: list[Exporter] = []
        self._scanner: Optional[Scanner] = None
        self._running = False
        self._shutdown_event: Optional[asyncio.Event] = None

    async def start(self) -> None:
        """Start all components."""
        logger.info("Starting tagcollector...")

        self._config = load_config(self._config_path)
        self._exporters = build_exporters(self._config.exporters)
        if not self._exporters:
            logger.warning("No exporters configured, readings will be discarded")

        self._scanner = Scanner(
            self._config,
            self._exporters,
            device_factory=self._device_factory,
        )
        await self._scanner.start()

        self._running = True
        logger.info("tagcollector started successfully")

    async def stop(self) -> None:
        """Stop the scanner and release exporter resources."""
        if self._scanner:
            self._scanner.stop()
            await self._scanner.join(timeout=self.STOP_TIMEOUT_SECONDS)

        for exporter in self._exporters:
            try:
                await exporter.close()
            except Exception as e:
                logger.error("Failed to close exporter %s: %s", exporter.name, e)

        if self._running:
            self._running = False
            logger.info("tagcollector stopped")

    async def run(self) -> None:
        """Run the application until shutdown signal."""
        self._shutdown_event = asyncio.Event()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_shutdown)

        try:
            await self.start()
            await self._shutdown_event.wait()
        finally:
            await self.stop()

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        if self._shutdown_event:
            self._shutdown_event.set()
