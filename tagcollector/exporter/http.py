"""HTTP exporter POSTing readings as JSON."""

from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from ..models import SensorReading
from .base import Exporter, NoMeasurementsError

logger = logging.getLogger(__name__)


class HttpExporter(Exporter):
    """POSTs each reading as a JSON document to a URL."""

    def __init__(self, url: str, token: str = "", timeout: float = 10.0) -> None:
        if not url:
            raise ValueError("parameter url must be non-empty")
        self._url = url
        self._token = token
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        return f"HTTP ({self._url})"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "From": "tagcollector",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def export(self, *readings: SensorReading) -> None:
        if not readings:
            raise NoMeasurementsError()

        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )

        for reading in readings:
            async with self._session.post(
                self._url,
                json=reading.to_dict(),
                headers=self._headers(),
            ) as resp:
                resp.raise_for_status()
            logger.debug("Posted reading from %s to %s", reading.mac, self._url)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
