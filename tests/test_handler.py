"""Unit tests for the protocol handler."""

from unittest.mock import AsyncMock

import pytest

from graphitizer_gateway.core.exceptions import SinkError, ValidationError
from graphitizer_gateway.protocol.confirmation import ConfirmationEngine, Confirmed, TimedOut
from graphitizer_gateway.protocol.handler import ProtocolHandler

from conftest import make_line


@pytest.fixture
def sink():
    return AsyncMock()


@pytest.fixture
def handler(gate, cache, sink):
    engine = ConfirmationEngine(
        gate,
        settle_delay=0,
        level_poll_delay=0,
        toggle_poll_delay=0,
        sample_retry_delay=0,
        timeout=5.0,
        max_polls=5,
    )
    return ProtocolHandler(gate, engine, cache, sink=sink)


class TestSetParameter:
    """Tests for ProtocolHandler.set_parameter."""

    @pytest.mark.asyncio
    async def test_confirmed_write(self, handler, cache, sink, device):
        """A confirmed write refreshes the cache and goes to the sink."""
        result = await handler.set_parameter("V05", "200")

        assert isinstance(result, Confirmed)
        assert result.frame["V05"] == 200
        assert await cache.get_field("V05") == 200
        sink.write.assert_awaited_once()
        assert sink.write.await_args.args[0]["V05"] == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,value", [("unknownParam", "1"), ("V00", "-1"), ("T01", "1000"), ("V00", None)])
    async def test_invalid_request_no_io(self, handler, device, name, value):
        """Validation fails before the channel is touched."""
        with pytest.raises(ValidationError):
            await handler.set_parameter(name, value)

        assert device.commands == []
        assert device.opened == 0

    @pytest.mark.asyncio
    async def test_timed_out_leaves_cache(self, handler, cache, sink, device):
        """An unconfirmed write neither updates the cache nor the sink."""
        device.apply_commands = False

        result = await handler.set_parameter("PUMP_ON")

        assert isinstance(result, TimedOut)
        assert result.attempts == 5
        assert await cache.get() is None
        sink.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_fail_write(self, handler, sink):
        """The write is still confirmed if recording it fails."""
        sink.write.side_effect = SinkError("database down")

        result = await handler.set_parameter("T02", "55")

        assert isinstance(result, Confirmed)

    @pytest.mark.asyncio
    async def test_without_sink(self, gate, cache):
        """The sink is optional."""
        engine = ConfirmationEngine(gate, settle_delay=0, timeout=5.0)
        handler = ProtocolHandler(gate, engine, cache)

        result = await handler.set_parameter("PUMP_OFF")

        assert isinstance(result, Confirmed)


class TestGetSnapshot:
    """Tests for ProtocolHandler.get_snapshot."""

    @pytest.mark.asyncio
    async def test_returns_and_caches(self, handler, cache, device):
        """A fresh snapshot is returned and cached."""
        device.queue(make_line(C02=40))

        frame = await handler.get_snapshot()

        assert frame["C02"] == 40
        assert (await cache.get()) == frame

    @pytest.mark.asyncio
    async def test_connected_follows_gate(self, handler, gate):
        """connected reflects the gate."""
        assert handler.connected is False

        await gate.open()

        assert handler.connected is True
