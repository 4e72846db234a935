"""Configuration loading from YAML."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .models import (
    AppConfig,
    DynamoDbExporterConfig,
    ExportersConfig,
    HttpExporterConfig,
    SqliteExporterConfig,
    TagConfig,
    TelegramExporterConfig,
)

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(ValueError):
    """Raised for configuration values that cannot be used."""


def parse_duration(value: Any) -> float:
    """Parse a duration in seconds from a number or a string like '60s', '5m', '1h'."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ConfigError(f"Invalid duration: {value!r}")
        seconds = float(match.group(1)) * _DURATION_UNITS[match.group(2) or "s"]

    if seconds <= 0:
        raise ConfigError(f"Duration must be positive: {value!r}")
    return seconds


def _load_exporters(data: dict) -> ExportersConfig:
    exporters = ExportersConfig()

    for key in data:
        if key not in ("console", "http", "sqlite", "dynamodb", "telegram"):
            logger.warning("Unknown exporter configuration ignored: %s", key)

    exporters.console = bool(data.get("console", False))

    if data.get("http"):
        http_data = data["http"]
        try:
            exporters.http = HttpExporterConfig(
                url=http_data["url"],
                token=http_data.get("token", ""),
                timeout=parse_duration(http_data.get("timeout", 10)),
            )
            logger.debug("Loaded HTTP exporter: %s", exporters.http.url)
        except KeyError as e:
            logger.warning("Invalid HTTP exporter configuration: missing %s", e)
        except TypeError:
            logger.warning("Invalid HTTP exporter configuration: %r", http_data)

    if data.get("sqlite"):
        sqlite_data = data["sqlite"]
        if isinstance(sqlite_data, dict):
            exporters.sqlite = SqliteExporterConfig(path=sqlite_data.get("path", "readings.db"))
        else:
            exporters.sqlite = SqliteExporterConfig()
        logger.debug("Loaded SQLite exporter: %s", exporters.sqlite.path)

    if data.get("dynamodb"):
        dynamo_data = data["dynamodb"]
        try:
            exporters.dynamodb = DynamoDbExporterConfig(
                table=str(dynamo_data["table"]),
                region=str(dynamo_data.get("region") or ""),
            )
            logger.debug("Loaded DynamoDB exporter: %s", exporters.dynamodb.table)
        except KeyError as e:
            logger.warning("Invalid DynamoDB exporter configuration: missing %s", e)
        except (TypeError, AttributeError):
            logger.warning("Invalid DynamoDB exporter configuration: %r", dynamo_data)

    if data.get("telegram"):
        tg_data = data["telegram"]
        try:
            exporters.telegram = TelegramExporterConfig(
                token=tg_data["token"],
                chat_id=int(tg_data["chat_id"]),
            )
            logger.debug("Loaded Telegram exporter configuration")
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Invalid Telegram exporter configuration: %s", e)

    return exporters


def load_config(config_path: Path) -> AppConfig:
    """Load configuration from a YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        data = {}

    tags = []
    for tag_data in data.get("ruuvitags") or []:
        try:
            tag = TagConfig(id=str(tag_data["id"]), name=str(tag_data.get("name") or ""))
            tags.append(tag)
            logger.debug("Loaded RuuviTag: %s (%s)", tag.name, tag.id)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning("Invalid RuuviTag configuration: %s - %s", tag_data, e)

    reporting_interval = parse_duration(data.get("reporting_interval", 60))

    export_timeout: Optional[float] = 30.0
    if "export_timeout" in data:
        raw_timeout = data["export_timeout"]
        export_timeout = None if raw_timeout is None else parse_duration(raw_timeout)

    config = AppConfig(
        reporting_interval=reporting_interval,
        export_timeout=export_timeout,
        ruuvitags=tags,
        exporters=_load_exporters(data.get("exporters") or {}),
    )
    logger.info("Loaded configuration with %d RuuviTags", len(tags))
    return config
