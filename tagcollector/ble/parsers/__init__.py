"""BLE manufacturer data parsers."""

from .base import BaseParser, ParseError
from .ruuvi import RuuviParser

__all__ = ["BaseParser", "ParseError", "RuuviParser"]
