"""Base parser class for BLE manufacturer data."""

from abc import ABC, abstractmethod

from ...models import SensorReading


class ParseError(ValueError):
    """Raised when a payload is malformed or not a supported format."""


class BaseParser(ABC):
    """Abstract base class for manufacturer data parsers."""

    @abstractmethod
    def parse(self, data: bytes) -> SensorReading:
        """
        Decode raw manufacturer data into a SensorReading.

        Args:
            data: Manufacturer data including the 2-byte company id

        Returns:
            SensorReading with measurements filled in; identity and
            timestamp are left for the caller

        Raises:
            ParseError: if the payload is malformed or unsupported
        """
        pass
