"""Shared formatting functions for text exporters."""

from __future__ import annotations

from typing import Optional

from .models import SensorReading


def format_value(value: Optional[float], fmt: str, unit: str) -> Optional[str]:
    """Format a measurement with its unit, or None if unavailable."""
    if value is None:
        return None
    return f"{value:{fmt}}{unit}"


def format_sensor_label(reading: SensorReading) -> str:
    """Display name with MAC, or just the MAC for unnamed tags."""
    if reading.name:
        return f"{reading.name} ({reading.mac})"
    return reading.mac


def format_reading(reading: SensorReading) -> str:
    """Format a reading as a single line (e.g. '12:00:00 Sauna (AA:..) 80.5°C 10%')."""
    parts = []
    if reading.timestamp:
        parts.append(reading.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"))
    parts.append(format_sensor_label(reading))

    values = [
        format_value(reading.temperature, ".1f", "°C"),
        format_value(reading.humidity, ".0f", "%"),
        format_value(reading.pressure, ".1f", " hPa"),
        format_value(reading.battery_voltage, ".2f", " V"),
    ]
    parts.extend(v for v in values if v is not None)
    return " ".join(parts)


def format_reading_message(reading: SensorReading) -> str:
    """Format a reading as a multi-line chat message."""
    lines = [format_sensor_label(reading)]
    if reading.temperature is not None:
        lines.append(f"🌡 {reading.temperature:.1f}°C")
    if reading.humidity is not None:
        lines.append(f"💧 {reading.humidity:.0f}%")
    if reading.pressure is not None:
        lines.append(f"🔵 {reading.pressure:.1f} hPa")
    if reading.battery_voltage is not None:
        lines.append(f"🔋 {reading.battery_voltage:.2f} V")
    if reading.movement_counter is not None:
        lines.append(f"↕ {reading.movement_counter}")
    if reading.timestamp:
        lines.append(reading.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"))
    return "\n".join(lines)
