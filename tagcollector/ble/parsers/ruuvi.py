"""RuuviTag manufacturer data parser for Data Formats 3 and 5."""

import struct
from typing import Optional

from ...models import SensorReading
from .base import BaseParser, ParseError


# RuuviTag manufacturer ID, little-endian on the wire
RUUVI_MANUFACTURER_ID = 0x0499
RUUVI_MANUFACTURER_PREFIX = RUUVI_MANUFACTURER_ID.to_bytes(2, "little")

DF3_LENGTH = 14
DF5_LENGTH = 18


class RuuviParser(BaseParser):
    """Parser for RuuviTag Data Format 3 (RAWv1) and Data Format 5 (RAWv2)."""

    def parse(self, data: bytes) -> SensorReading:
        """Parse RuuviTag manufacturer data."""
        if len(data) < 3:
            raise ParseError(f"payload too short: {len(data)} bytes")
        if data[:2] != RUUVI_MANUFACTURER_PREFIX:
            raise ParseError(f"not a RuuviTag manufacturer id: 0x{data[1]:02x}{data[0]:02x}")

        payload = bytes(data[2:])
        data_format = payload[0]
        if data_format == 3:
            return self._parse_df3(payload)
        elif data_format == 5:
            return self._parse_df5(payload)

        raise ParseError(f"unsupported data format {data_format}")

    def _parse_df3(self, data: bytes) -> SensorReading:
        """
        Parse Data Format 3 (RAWv1).

        Format:
        - Byte 0: Data format (0x03)
        - Byte 1: Humidity (0.5% per unit)
        - Byte 2: Temperature (integer part, MSB is the sign bit)
        - Byte 3: Temperature (fraction, 1/100)
        - Bytes 4-5: Pressure (unsigned, 50000 Pa added)
        - Bytes 6-7: Acceleration X (signed, mG)
        - Bytes 8-9: Acceleration Y
        - Bytes 10-11: Acceleration Z
        - Bytes 12-13: Battery voltage (mV)
        """
        if len(data) < DF3_LENGTH:
            raise ParseError(f"DF3 data too short: {len(data)} bytes")

        humidity = data[1] * 0.5

        temperature = (data[2] & 0x7F) + data[3] / 100.0
        if data[2] & 0x80:
            temperature = -temperature

        pressure_raw = struct.unpack(">H", data[4:6])[0]
        pressure = (pressure_raw + 50000) / 100.0

        acc_x, acc_y, acc_z = struct.unpack(">hhh", data[6:12])

        battery_mv = struct.unpack(">H", data[12:14])[0]

        return SensorReading(
            temperature=round(temperature, 2),
            humidity=humidity,
            pressure=pressure,
            acceleration_x=acc_x,
            acceleration_y=acc_y,
            acceleration_z=acc_z,
            battery_voltage=battery_mv / 1000.0,
        )

    def _parse_df5(self, data: bytes) -> SensorReading:
        """
        Parse Data Format 5 (RAWv2).

        Format:
        - Byte 0: Data format (0x05)
        - Bytes 1-2: Temperature (0.005 degree per unit, signed)
        - Bytes 3-4: Humidity (0.0025% per unit)
        - Bytes 5-6: Pressure (unsigned, 50000 Pa added)
        - Bytes 7-8: Acceleration X (signed, mG)
        - Bytes 9-10: Acceleration Y
        - Bytes 11-12: Acceleration Z
        - Bytes 13-14: Power info (11 bits voltage, 5 bits TX power)
        - Byte 15: Movement counter
        - Bytes 16-17: Measurement sequence
        """
        if len(data) < DF5_LENGTH:
            raise ParseError(f"DF5 data too short: {len(data)} bytes")

        temp_raw = struct.unpack(">h", data[1:3])[0]
        if temp_raw == -32768:
            raise ParseError("DF5 invalid temperature value")
        temperature = round(temp_raw * 0.005, 3)

        humidity_raw = struct.unpack(">H", data[3:5])[0]
        humidity: Optional[float] = None
        if humidity_raw != 65535:
            humidity = round(humidity_raw * 0.0025, 4)

        pressure_raw = struct.unpack(">H", data[5:7])[0]
        pressure: Optional[float] = None
        if pressure_raw != 65535:
            pressure = (pressure_raw + 50000) / 100.0

        acc_x, acc_y, acc_z = (
            None if v == -32768 else v for v in struct.unpack(">hhh", data[7:13])
        )

        power_raw = struct.unpack(">H", data[13:15])[0]
        voltage_raw = power_raw >> 5
        battery_voltage: Optional[float] = None
        if voltage_raw != 2047:
            battery_voltage = (voltage_raw + 1600) / 1000.0

        movement_counter: Optional[int] = data[15]
        if movement_counter == 255:
            movement_counter = None

        return SensorReading(
            temperature=temperature,
            humidity=humidity,
            pressure=pressure,
            acceleration_x=acc_x,
            acceleration_y=acc_y,
            acceleration_z=acc_z,
            battery_voltage=battery_voltage,
            movement_counter=movement_counter,
        )
