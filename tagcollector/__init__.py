"""tagcollector: RuuviTag BLE reading collector."""

__version__ = "0.1.0"
