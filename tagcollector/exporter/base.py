"""Base class for reading exporters."""

from abc import ABC, abstractmethod

from ..models import SensorReading


class NoMeasurementsError(ValueError):
    """Raised when export() is called without any readings."""

    def __init__(self) -> None:
        super().__init__("no measurements")


class Exporter(ABC):
    """Abstract base class for sinks that receive sensor readings."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable exporter name used in logs."""
        pass

    @abstractmethod
    async def export(self, *readings: SensorReading) -> None:
        """
        Deliver one or more readings.

        Raises:
            NoMeasurementsError: if called with no readings
            Exception: any delivery failure, which the caller logs
        """
        pass

    async def close(self) -> None:
        """Release held resources."""
        pass
