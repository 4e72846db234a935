"""Reading exporters."""

from __future__ import annotations

import logging
from pathlib import Path

from ..models import ExportersConfig
from .base import Exporter, NoMeasurementsError
from .console import ConsoleExporter
from .http import HttpExporter
from .sqlite import SqliteExporter

try:
    from .dynamodb import DynamoDbExporter

    _HAS_BOTO3 = True
except ImportError:
    DynamoDbExporter = None  # type: ignore[assignment,misc]
    _HAS_BOTO3 = False

try:
    from .telegram import TelegramExporter

    _HAS_TELEGRAM = True
except ImportError:
    TelegramExporter = None  # type: ignore[assignment,misc]
    _HAS_TELEGRAM = False

logger = logging.getLogger(__name__)


def build_exporters(config: ExportersConfig) -> list[Exporter]:
    """Create the configured exporters in a fixed order."""
    exporters: list[Exporter] = []

    if config.console:
        exporters.append(ConsoleExporter())

    if config.http:
        exporters.append(
            HttpExporter(config.http.url, token=config.http.token, timeout=config.http.timeout)
        )

    if config.sqlite:
        exporters.append(SqliteExporter(Path(config.sqlite.path)))

    if config.dynamodb:
        if _HAS_BOTO3:
            exporters.append(DynamoDbExporter(config.dynamodb))
        else:
            logger.warning(
                "DynamoDB configured but boto3 not installed. "
                "Install with: pip install tagcollector[aws]"
            )

    if config.telegram:
        if _HAS_TELEGRAM:
            exporters.append(TelegramExporter(config.telegram))
        else:
            logger.warning(
                "Telegram configured but python-telegram-bot not installed. "
                "Install with: pip install tagcollector[telegram]"
            )

    for exporter in exporters:
        logger.info("Exporting to %s", exporter.name)
    return exporters


__all__ = [
    "ConsoleExporter",
    "DynamoDbExporter",
    "Exporter",
    "HttpExporter",
    "NoMeasurementsError",
    "SqliteExporter",
    "TelegramExporter",
    "build_exporters",
]
