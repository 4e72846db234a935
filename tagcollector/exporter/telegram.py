"""Telegram exporter sending readings as chat messages."""

from __future__ import annotations

import logging
from typing import Optional

from telegram import Bot

from ..formatting import format_reading_message
from ..models import SensorReading, TelegramExporterConfig
from .base import Exporter, NoMeasurementsError

logger = logging.getLogger(__name__)


class TelegramExporter(Exporter):
    """Sends one message per reading to the configured chat."""

    def __init__(self, config: TelegramExporterConfig, bot: Optional[Bot] = None) -> None:
        self._config = config
        self._bot = bot or Bot(token=config.token)
        self._initialized = False

    @property
    def name(self) -> str:
        return f"Telegram (chat {self._config.chat_id})"

    async def export(self, *readings: SensorReading) -> None:
        if not readings:
            raise NoMeasurementsError()

        if not self._initialized:
            await self._bot.initialize()
            self._initialized = True

        for reading in readings:
            await self._bot.send_message(
                chat_id=self._config.chat_id,
                text=format_reading_message(reading),
            )

    async def close(self) -> None:
        """Shut down the bot's HTTP resources."""
        if self._initialized:
            await self._bot.shutdown()
            self._initialized = False
            logger.debug("Telegram bot shut down")
