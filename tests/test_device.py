"""Tests for device id parsing and Bleak advertisement conversion."""

from __future__ import annotations

import asyncio
import logging
import sys
from types import SimpleNamespace

import pytest

from tagcollector.ble import bleak_device
from tagcollector.ble.bleak_device import BleakDevice, _run_command, manufacturer_bytes
from tagcollector.ble.device import InvalidDeviceIDError, parse_device_id


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("cc:ca:7e:52:cc:34", "CC:CA:7E:52:CC:34"),
        ("CC-CA-7E-52-CC-34", "CC:CA:7E:52:CC:34"),
        (" AA:BB:CC:DD:EE:FF ", "AA:BB:CC:DD:EE:FF"),
        ("3f2504e0-4f89-11d3-9a0c-0305e82c3301", "3F2504E0-4F89-11D3-9A0C-0305E82C3301"),
    ],
)
def test_parse_device_id_normalizes(raw: str, expected: str) -> None:
    assert parse_device_id(raw) == expected


@pytest.mark.parametrize("raw", ["", "backyard", "AA:BB:CC:DD:EE", "GG:BB:CC:DD:EE:FF"])
def test_parse_device_id_rejects_garbage(raw: str) -> None:
    with pytest.raises(InvalidDeviceIDError, match="Failed to parse RuuviTag ID"):
        parse_device_id(raw)


def test_manufacturer_bytes_prepends_company_id() -> None:
    adv = SimpleNamespace(manufacturer_data={0x0499: b"\x05\x12\xfc"})

    assert manufacturer_bytes(adv) == b"\x99\x04\x05\x12\xfc"


def test_manufacturer_bytes_empty_without_manufacturer_data() -> None:
    assert manufacturer_bytes(SimpleNamespace(manufacturer_data={})) == b""


def test_run_command_does_not_block_the_event_loop() -> None:
    async def scenario() -> tuple[int, int]:
        ticks = 0

        async def ticker() -> None:
            nonlocal ticks
            while True:
                await asyncio.sleep(0.01)
                ticks += 1

        task = asyncio.create_task(ticker())
        returncode, _ = await _run_command(
            sys.executable, "-c", "import time; time.sleep(0.3)", timeout=5
        )
        task.cancel()
        return returncode, ticks

    returncode, ticks = asyncio.run(scenario())

    assert returncode == 0
    assert ticks >= 5


def test_run_command_kills_process_on_timeout() -> None:
    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(
            _run_command(sys.executable, "-c", "import time; time.sleep(10)", timeout=0.2)
        )


def test_adapter_reset_falls_back_to_hciconfig(monkeypatch, caplog) -> None:
    calls = []

    async def fake_run_command(*args: str, timeout: float) -> tuple[int, str]:
        calls.append(args)
        if args[0] == "bluetoothctl":
            raise FileNotFoundError("bluetoothctl")
        return 1, "Operation not permitted"

    monkeypatch.setattr(bleak_device, "IS_MACOS", False)
    monkeypatch.setattr(bleak_device, "_run_command", fake_run_command)

    with caplog.at_level(logging.DEBUG, logger="tagcollector.ble.bleak_device"):
        asyncio.run(BleakDevice(adapter="hci1")._reset_bluetooth_adapter())

    assert calls == [("bluetoothctl", "power", "off"), ("hciconfig", "hci1", "reset")]
    assert "hciconfig reset failed: Operation not permitted" in caplog.text
