"""InfluxDB 1.x sink for device snapshots.

The influxdb client is blocking (requests under the hood), so every call is
pushed to a single worker thread with run_in_executor(). The database and
its retention policy must already exist.
"""

import asyncio
import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import requests
from influxdb import InfluxDBClient
from influxdb.exceptions import InfluxDBClientError, InfluxDBServerError

from graphitizer_gateway.core.exceptions import SinkError

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (InfluxDBClientError, InfluxDBServerError, requests.exceptions.RequestException)


class InfluxSink:
    """Writes one point per snapshot into an InfluxDB measurement."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8086,
        database: str = "data",
        measurement: str = "outputs",
        retention_policy: str | None = "autogen",
        username: str = "root",
        password: str = "root",
        client: InfluxDBClient | None = None,
    ):
        """
        Initialize the sink.

        Args:
            host: InfluxDB host
            port: InfluxDB HTTP port
            database: Target database (must exist)
            measurement: Measurement name for snapshot points
            retention_policy: Retention policy to write into, None for the default
            username: InfluxDB user
            password: InfluxDB password
            client: Pre-built client, mainly for tests
        """
        self.database = database
        self.measurement = measurement
        self.retention_policy = retention_policy
        self._client = client or InfluxDBClient(
            host=host,
            port=port,
            username=username,
            password=password,
            database=database,
        )
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="influx")
        self._stats = {
            "points_written": 0,
            "points_failed": 0,
        }

    @property
    def stats(self) -> dict:
        """Get sink statistics."""
        return self._stats.copy()

    async def connect(self) -> str:
        """
        Check the server is reachable.

        Returns:
            Server version string

        Raises:
            SinkError: If the server cannot be reached
        """
        loop = asyncio.get_event_loop()
        try:
            version = await loop.run_in_executor(self._executor, self._client.ping)
        except _CLIENT_ERRORS as e:
            raise SinkError(f"InfluxDB not reachable: {e}") from e

        logger.info("Connected to database! version %s", version)
        return version

    def build_point(self, fields: Mapping[str, int], timestamp: datetime) -> dict:
        """Build the JSON body for a single point."""
        return {
            "measurement": self.measurement,
            "time": timestamp.isoformat(),
            "fields": dict(fields),
        }

    async def write(self, fields: Mapping[str, int], timestamp: datetime | None = None) -> None:
        """
        Write one snapshot as a point.

        Args:
            fields: Field name to integer value
            timestamp: Point time, defaults to now (UTC)

        Raises:
            SinkError: If the write fails
        """
        if not fields:
            return

        point = self.build_point(fields, timestamp or datetime.now(timezone.utc))
        loop = asyncio.get_event_loop()
        try:
            await loop.run_in_executor(self._executor, self._write_points, [point])
        except _CLIENT_ERRORS as e:
            self._stats["points_failed"] += 1
            raise SinkError(f"InfluxDB write failed: {e}") from e

        self._stats["points_written"] += 1
        logger.debug("Wrote %d fields to %s.%s", len(point["fields"]), self.database, self.measurement)

    def _write_points(self, points: list[dict]) -> None:
        self._client.write_points(
            points,
            database=self.database,
            retention_policy=self.retention_policy,
        )

    async def close(self) -> None:
        """Close the client and its worker thread."""
        self._client.close()
        self._executor.shutdown(wait=False)
