"""Latest-snapshot cache for the graphitizer gateway."""

import asyncio
from datetime import datetime, timezone

from graphitizer_gateway.protocol.frames import Frame


class SnapshotCache:
    """Async-safe holder for the most recent device snapshot.

    Updated by the telemetry loop and by confirmed writes; read by the
    health endpoint.
    """

    def __init__(self) -> None:
        """Initialize empty cache."""
        self._lock = asyncio.Lock()
        self._frame: Frame | None = None
        self._last_update: datetime | None = None

    async def get(self) -> Frame | None:
        """Get the latest snapshot, if any."""
        async with self._lock:
            return self._frame

    async def get_field(self, name: str) -> int | None:
        """Get one field of the latest snapshot."""
        async with self._lock:
            if self._frame is None:
                return None
            return self._frame.get(name)

    async def set(self, frame: Frame, timestamp: datetime | None = None) -> None:
        """Store a new snapshot."""
        async with self._lock:
            self._frame = frame
            self._last_update = timestamp or datetime.now(timezone.utc)

    async def clear(self) -> None:
        """Forget the stored snapshot."""
        async with self._lock:
            self._frame = None
            self._last_update = None

    @property
    def last_update(self) -> datetime | None:
        """Get timestamp of last cache update."""
        return self._last_update

    @property
    def count(self) -> int:
        """Number of fields in the latest snapshot."""
        return len(self._frame) if self._frame is not None else 0
