"""Request operations for the graphitizer gateway.

Ties the registry, the confirmation engine, the snapshot cache and the
time-series sink together behind the two operations the API exposes:
``set_parameter`` and ``get_snapshot``.
"""

import logging
import time
from datetime import datetime, timezone

from graphitizer_gateway.core.cache import SnapshotCache
from graphitizer_gateway.core.exceptions import SinkError
from graphitizer_gateway.protocol.confirmation import (
    ConfirmationEngine,
    ConfirmationOutcome,
    Confirmed,
)
from graphitizer_gateway.protocol.frames import Frame
from graphitizer_gateway.protocol.registry import DEFAULT_REGISTRY, ParameterRegistry
from graphitizer_gateway.protocol.telemetry import SnapshotSink
from graphitizer_gateway.serial.gate import ChannelGate

logger = logging.getLogger(__name__)


class ProtocolHandler:
    """Foreground operations on the device.

    Safe to call from any number of concurrent requests; all channel
    access goes through the shared ChannelGate.
    """

    def __init__(
        self,
        gate: ChannelGate,
        engine: ConfirmationEngine,
        cache: SnapshotCache,
        sink: SnapshotSink | None = None,
        registry: ParameterRegistry = DEFAULT_REGISTRY,
    ):
        """Initialize protocol handler.

        Args:
            gate: Channel gate (used for connection state only).
            engine: Confirmation engine that performs the I/O.
            cache: Snapshot cache to refresh with confirmed snapshots.
            sink: Optional sink that also receives confirmed snapshots.
            registry: Parameter registry used for validation.
        """
        self._gate = gate
        self._engine = engine
        self._cache = cache
        self._sink = sink
        self._registry = registry

    @property
    def connected(self) -> bool:
        """Whether the serial channel is open."""
        return self._gate.connected

    @property
    def registry(self) -> ParameterRegistry:
        return self._registry

    async def set_parameter(self, name: str, value: str | None = None) -> ConfirmationOutcome:
        """Write a parameter and wait for the device to confirm it.

        Args:
            name: Parameter name, e.g. ``V00``, ``T01`` or ``PUMP_ON``.
            value: Decimal value string; None or empty for toggles.

        Returns:
            Confirmed or TimedOut.

        Raises:
            ValidationError: If the request is invalid. Nothing is sent.
        """
        request = self._registry.validate(name, value)
        started = time.monotonic()
        outcome = await self._engine.execute(request)
        logger.info("Response took %.0f ms", (time.monotonic() - started) * 1000)

        if isinstance(outcome, Confirmed):
            await self._record(outcome.frame)

        return outcome

    async def get_snapshot(self) -> Frame | None:
        """Read one fresh snapshot.

        Returns:
            The snapshot, or None if no valid snapshot arrived in time.
        """
        frame = await self._engine.read_snapshot()
        if frame is not None:
            await self._cache.set(frame)
        return frame

    async def _record(self, frame: Frame) -> None:
        timestamp = datetime.now(timezone.utc)
        await self._cache.set(frame, timestamp)

        if self._sink is None:
            return

        try:
            await self._sink.write(frame.to_dict(), timestamp)
        except SinkError as e:
            logger.error("Failed to record confirmed snapshot: %s", e)
