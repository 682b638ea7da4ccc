"""Unit tests for snapshot cache."""

import asyncio
from datetime import datetime, timezone

import pytest

from graphitizer_gateway.core.cache import SnapshotCache
from graphitizer_gateway.protocol.frames import Frame


class TestSnapshotCache:
    """Tests for SnapshotCache class."""

    @pytest.mark.asyncio
    async def test_init_empty(self):
        """Test cache starts empty."""
        cache = SnapshotCache()

        assert cache.count == 0
        assert cache.last_update is None
        assert await cache.get() is None
        assert await cache.get_field("V00") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self):
        """Test storing and retrieving a snapshot."""
        cache = SnapshotCache()
        frame = Frame({"V00": 255, "PUMP": 1})

        await cache.set(frame)

        assert await cache.get() is frame
        assert await cache.get_field("V00") == 255
        assert await cache.get_field("T01") is None
        assert cache.count == 2

    @pytest.mark.asyncio
    async def test_timestamp(self):
        """Test explicit and default timestamps."""
        cache = SnapshotCache()
        stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

        await cache.set(Frame({"V00": 1}), stamp)
        assert cache.last_update == stamp

        await cache.set(Frame({"V00": 2}))
        assert cache.last_update > stamp

    @pytest.mark.asyncio
    async def test_replace(self):
        """Test a newer snapshot replaces the old one."""
        cache = SnapshotCache()

        await cache.set(Frame({"V00": 1, "V01": 2}))
        await cache.set(Frame({"V00": 3}))

        assert await cache.get_field("V00") == 3
        assert await cache.get_field("V01") is None
        assert cache.count == 1

    @pytest.mark.asyncio
    async def test_clear(self):
        """Test clearing the cache."""
        cache = SnapshotCache()
        await cache.set(Frame({"V00": 1}))

        await cache.clear()

        assert cache.count == 0
        assert cache.last_update is None

    @pytest.mark.asyncio
    async def test_concurrent_access(self):
        """Test concurrent writers and readers."""
        cache = SnapshotCache()

        async def writer(i: int):
            await cache.set(Frame({"V00": i}))

        async def reader():
            return await cache.get()

        await asyncio.gather(*[writer(i) for i in range(50)], *[reader() for _ in range(50)])

        assert cache.count == 1
        assert 0 <= await cache.get_field("V00") < 50
