"""Data models for tagcollector."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass(frozen=True)
class SensorReading:
    """A single decoded RuuviTag reading.

    Acceleration is in milli-g, pressure in hPa, battery voltage in volts.
    Values the tag reports as unavailable are None.
    """

    mac: str = ""
    name: str = ""
    timestamp: Optional[datetime] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    acceleration_x: Optional[int] = None
    acceleration_y: Optional[int] = None
    acceleration_z: Optional[int] = None
    battery_voltage: Optional[float] = None
    movement_counter: Optional[int] = None
    rssi: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Render the reading as a JSON-friendly dict."""
        return {
            "mac": self.mac,
            "name": self.name,
            "ts": format_timestamp(self.timestamp),
            "temperature": self.temperature,
            "humidity": self.humidity,
            "pressure": self.pressure,
            "acceleration_x": self.acceleration_x,
            "acceleration_y": self.acceleration_y,
            "acceleration_z": self.acceleration_z,
            "battery_voltage": self.battery_voltage,
            "movement_counter": self.movement_counter,
            "rssi": self.rssi,
        }


def format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    """Format a timestamp as ISO-8601 UTC with a Z suffix."""
    if ts is None:
        return None
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts.isoformat(timespec="seconds") + "Z"


@dataclass
class TagConfig:
    """Configuration for a single RuuviTag."""

    id: str
    name: str = ""


@dataclass
class HttpExporterConfig:
    """HTTP exporter configuration."""

    url: str
    token: str = ""
    timeout: float = 10.0


@dataclass
class SqliteExporterConfig:
    """SQLite exporter configuration."""

    path: str = "readings.db"


@dataclass
class DynamoDbExporterConfig:
    """AWS DynamoDB exporter configuration."""

    table: str
    region: str = ""


@dataclass
class TelegramExporterConfig:
    """Telegram exporter configuration."""

    token: str
    chat_id: int


@dataclass
class ExportersConfig:
    """Which exporters to run."""

    console: bool = False
    http: Optional[HttpExporterConfig] = None
    sqlite: Optional[SqliteExporterConfig] = None
    dynamodb: Optional[DynamoDbExporterConfig] = None
    telegram: Optional[TelegramExporterConfig] = None


@dataclass
class AppConfig:
    """Application configuration."""

    reporting_interval: float = 60.0
    export_timeout: Optional[float] = 30.0
    ruuvitags: list[TagConfig] = field(default_factory=list)
    exporters: ExportersConfig = field(default_factory=ExportersConfig)
