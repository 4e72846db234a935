"""Unit tests for the RuuviTag payload decoder."""

from __future__ import annotations

import pytest

from fakes import DF3_VALID, DF5_INVALID, DF5_VALID
from tagcollector.ble.parsers import ParseError, RuuviParser


def test_parse_df5_valid_vector() -> None:
    reading = RuuviParser().parse(DF5_VALID)

    assert reading.temperature == pytest.approx(24.3)
    assert reading.humidity == pytest.approx(53.49)
    assert reading.pressure == pytest.approx(1000.44)
    assert (reading.acceleration_x, reading.acceleration_y, reading.acceleration_z) == (4, -4, 1036)
    assert reading.battery_voltage == pytest.approx(2.977)
    assert reading.movement_counter == 66
    assert reading.mac == ""
    assert reading.timestamp is None


def test_parse_df5_maximum_values() -> None:
    data = bytes.fromhex("9904" "057FFFFFFEFFFE7FFF7FFF7FFFFFDEFEFFFECBB8334C884F")

    reading = RuuviParser().parse(data)

    assert reading.temperature == pytest.approx(163.835)
    assert reading.humidity == pytest.approx(163.835)
    assert reading.pressure == pytest.approx(1155.34)
    assert reading.acceleration_x == 32767
    assert reading.battery_voltage == pytest.approx(3.646)
    assert reading.movement_counter == 254


def test_parse_df5_invalid_temperature_is_rejected() -> None:
    with pytest.raises(ParseError, match="invalid temperature"):
        RuuviParser().parse(DF5_INVALID)


def test_parse_df5_unavailable_fields_are_none() -> None:
    payload = bytearray(DF5_VALID)
    payload[2 + 3:2 + 7] = b"\xff\xff\xff\xff"  # humidity, pressure
    payload[2 + 15] = 0xFF  # movement counter

    reading = RuuviParser().parse(bytes(payload))

    assert reading.humidity is None
    assert reading.pressure is None
    assert reading.movement_counter is None
    assert reading.temperature == pytest.approx(24.3)


def test_parse_df3_valid_vector() -> None:
    reading = RuuviParser().parse(DF3_VALID)

    assert reading.humidity == pytest.approx(20.5)
    assert reading.temperature == pytest.approx(26.3)
    assert reading.pressure == pytest.approx(1027.66)
    assert (reading.acceleration_x, reading.acceleration_y, reading.acceleration_z) == (-1000, -1726, 714)
    assert reading.battery_voltage == pytest.approx(2.899)
    assert reading.movement_counter is None


def test_parse_df3_negative_temperature_uses_sign_bit() -> None:
    data = bytes.fromhex("9904" "0300FF63C350000000000000" "0BB8")

    reading = RuuviParser().parse(data)

    assert reading.temperature == pytest.approx(-127.99)


@pytest.mark.parametrize(
    ("data", "message"),
    [
        (b"", "too short"),
        (b"\x99\x04", "too short"),
        (b"\x4c\x00\x02\x15", "manufacturer id"),
        (b"\x99\x04\x08" + bytes(20), "unsupported data format 8"),
        (DF5_VALID[:12], "DF5 data too short"),
        (DF3_VALID[:8], "DF3 data too short"),
    ],
)
def test_parse_rejects_malformed_payloads(data: bytes, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        RuuviParser().parse(data)
