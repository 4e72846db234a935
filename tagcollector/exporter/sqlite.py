"""SQLite exporter storing every reading as a row."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from ..models import SensorReading, format_timestamp
from .base import Exporter, NoMeasurementsError

logger = logging.getLogger(__name__)


class SqliteExporter(Exporter):
    """Appends readings to a local SQLite database."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def name(self) -> str:
        return f"SQLite ({self._db_path})"

    def connect(self) -> None:
        """Connect to database and create tables."""
        logger.info("Connecting to database: %s", self._db_path)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        if not self._conn:
            return

        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS readings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                mac TEXT NOT NULL,
                name TEXT,
                timestamp DATETIME NOT NULL,
                temperature REAL,
                humidity REAL,
                pressure REAL,
                acceleration_x INTEGER,
                acceleration_y INTEGER,
                acceleration_z INTEGER,
                battery_voltage REAL,
                movement_counter INTEGER,
                rssi INTEGER,
                UNIQUE(mac, timestamp)
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_readings_mac_time
            ON readings(mac, timestamp)
        """)
        self._conn.commit()
        logger.debug("Database tables created")

    async def export(self, *readings: SensorReading) -> None:
        if not readings:
            raise NoMeasurementsError()
        if not self._conn:
            self.connect()

        self._conn.executemany(
            """
            INSERT OR REPLACE INTO readings
            (mac, name, timestamp, temperature, humidity, pressure,
             acceleration_x, acceleration_y, acceleration_z,
             battery_voltage, movement_counter, rssi)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    r.mac,
                    r.name,
                    format_timestamp(r.timestamp),
                    r.temperature,
                    r.humidity,
                    r.pressure,
                    r.acceleration_x,
                    r.acceleration_y,
                    r.acceleration_z,
                    r.battery_voltage,
                    r.movement_counter,
                    r.rssi,
                )
                for r in readings
            ],
        )
        self._conn.commit()
        logger.debug("Saved %d reading(s) to %s", len(readings), self._db_path)

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
