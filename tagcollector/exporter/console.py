"""Exporter printing readings to the console."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from ..formatting import format_reading
from ..models import SensorReading
from .base import Exporter, NoMeasurementsError


class ConsoleExporter(Exporter):
    """Writes one line per reading to stdout."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    @property
    def name(self) -> str:
        return "Console"

    async def export(self, *readings: SensorReading) -> None:
        if not readings:
            raise NoMeasurementsError()
        stream = self._stream or sys.stdout
        for reading in readings:
            print(format_reading(reading), file=stream)
        stream.flush()
