"""AWS DynamoDB exporter writing one item per reading."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Optional

import boto3

from ..models import DynamoDbExporterConfig, SensorReading, format_timestamp
from .base import Exporter, NoMeasurementsError

logger = logging.getLogger(__name__)

# BatchWriteItem accepts at most 25 put requests per call
MAX_BATCH_SIZE = 25

_NUMBER_FIELDS = (
    "temperature",
    "humidity",
    "pressure",
    "acceleration_x",
    "acceleration_y",
    "acceleration_z",
    "battery_voltage",
    "movement_counter",
    "rssi",
)


def reading_to_item(reading: SensorReading) -> dict[str, dict[str, str]]:
    """Convert a reading to a DynamoDB item in attribute-value form."""
    item = {
        "mac": {"S": reading.mac},
        "name": {"S": reading.name},
        "ts": {"S": format_timestamp(reading.timestamp) or ""},
    }
    for field_name in _NUMBER_FIELDS:
        value = getattr(reading, field_name)
        if value is not None:
            item[field_name] = {"N": str(value)}
    return item


class DynamoDbExporter(Exporter):
    """Batch-writes readings to a DynamoDB table.

    boto3 is synchronous, so each batch runs in the default executor.
    """

    def __init__(self, config: DynamoDbExporterConfig, client: Optional[Any] = None) -> None:
        if not config.table:
            raise ValueError("parameter table must be non-empty")
        self._table = config.table
        if client is None:
            kwargs = {"region_name": config.region} if config.region else {}
            client = boto3.client("dynamodb", **kwargs)
        self._client = client

    @property
    def name(self) -> str:
        return f"AWS DynamoDB ({self._table})"

    async def export(self, *readings: SensorReading) -> None:
        if not readings:
            raise NoMeasurementsError()

        loop = asyncio.get_running_loop()
        items = [reading_to_item(r) for r in readings]
        for i in range(0, len(items), MAX_BATCH_SIZE):
            batch = items[i : i + MAX_BATCH_SIZE]
            request = {self._table: [{"PutRequest": {"Item": item}} for item in batch]}
            response = await loop.run_in_executor(
                None, functools.partial(self._client.batch_write_item, RequestItems=request)
            )
            unprocessed = (response or {}).get("UnprocessedItems", {}).get(self._table, [])
            if unprocessed:
                logger.warning(
                    "%d of %d item(s) not written to %s", len(unprocessed), len(batch), self._table
                )

    async def close(self) -> None:
        """Close the client's HTTP connections."""
        self._client.close()
