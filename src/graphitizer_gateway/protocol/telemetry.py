"""Background telemetry loop.

Once per interval, read a full snapshot through the channel gate and
forward it to the time-series sink. Bad lines and channel failures skip
the cycle; the loop only ends when stopped.
"""

import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Protocol

from graphitizer_gateway.core.cache import SnapshotCache
from graphitizer_gateway.core.exceptions import ChannelError, DecodeError, SinkError
from graphitizer_gateway.protocol.codec import decode_frame
from graphitizer_gateway.protocol.constants import SNAPSHOT_COMMAND, TELEMETRY_INTERVAL
from graphitizer_gateway.protocol.registry import DEFAULT_REGISTRY, ParameterRegistry
from graphitizer_gateway.serial.gate import ChannelGate

logger = logging.getLogger(__name__)


class SnapshotSink(Protocol):
    """Anything that stores a flat set of integer fields with a timestamp."""

    async def write(self, fields: Mapping[str, int], timestamp: datetime | None = None) -> None: ...


class TelemetryLoop:
    """Periodically samples the device and writes each snapshot to the sink."""

    def __init__(
        self,
        gate: ChannelGate,
        sink: SnapshotSink,
        cache: SnapshotCache | None = None,
        registry: ParameterRegistry = DEFAULT_REGISTRY,
        interval: float = TELEMETRY_INTERVAL,
    ):
        """Initialize telemetry loop.

        Args:
            gate: Channel gate shared with foreground requests.
            sink: Destination for snapshots.
            cache: Optional cache updated with every valid snapshot.
            registry: Parameter registry used for decoding.
            interval: Seconds between cycles.
        """
        self._gate = gate
        self._sink = sink
        self._cache = cache
        self._registry = registry
        self._interval = interval

        self._task: asyncio.Task | None = None
        self._running = False
        self._stats = {
            "cycles": 0,
            "points_written": 0,
            "decode_errors": 0,
            "channel_errors": 0,
            "sink_errors": 0,
        }

    @property
    def running(self) -> bool:
        """Whether the background task is active."""
        return self._running

    @property
    def stats(self) -> dict:
        """Get loop statistics."""
        return self._stats.copy()

    async def start(self) -> None:
        """Start the background task."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Telemetry loop started (interval %.1fs)", self._interval)

    async def stop(self) -> None:
        """Stop the background task."""
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Telemetry loop stopped")

    async def run_cycle(self) -> bool:
        """Run a single telemetry cycle.

        Returns:
            True if a snapshot was written to the sink.
        """
        self._stats["cycles"] += 1

        try:
            line = await self._gate.round_trip(SNAPSHOT_COMMAND)
        except ChannelError as e:
            self._stats["channel_errors"] += 1
            logger.warning("CONNECTION ERROR, retrying next cycle: %s", e)
            return False

        try:
            frame = decode_frame(line, self._registry)
        except DecodeError as e:
            self._stats["decode_errors"] += 1
            logger.warning("Invalid output! %s", e)
            return False

        timestamp = datetime.now(timezone.utc)
        if self._cache is not None:
            await self._cache.set(frame, timestamp)

        try:
            await self._sink.write(frame.to_dict(), timestamp)
        except SinkError as e:
            self._stats["sink_errors"] += 1
            logger.error("Failed to write snapshot: %s", e)
            return False

        self._stats["points_written"] += 1
        logger.debug("Wrote snapshot with %d fields", len(frame))

        return True

    async def _loop(self) -> None:
        """Background loop. Errors never end it; only cancellation does."""
        consecutive_errors = 0

        while self._running:
            try:
                if await self.run_cycle():
                    consecutive_errors = 0
            except asyncio.CancelledError:
                raise
            except Exception as e:
                consecutive_errors += 1
                if consecutive_errors <= 3:
                    logger.error(f"Telemetry error: {e}")

            await asyncio.sleep(self._interval)
