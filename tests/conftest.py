"""Shared test fixtures and fakes."""

import asyncio
import re
from collections import deque

import pytest

from graphitizer_gateway.core.cache import SnapshotCache
from graphitizer_gateway.protocol.constants import LEVEL_PARAMS, THRESHOLD_PARAMS
from graphitizer_gateway.serial.gate import ChannelGate

# 9 valves + 8 setpoints + 8 measured temperatures + 2 status + pump = 28 fields
DEFAULT_FIELDS: dict[str, int] = {
    **{name: 0 for name in LEVEL_PARAMS},
    **{name: 80 for name in THRESHOLD_PARAMS},
    **{f"C{i:02d}": 25 for i in range(1, 9)},
    "S01": 0,
    "S02": 0,
    "PUMP": 0,
}

_SET_RE = re.compile(r"<SET_(\w+)=(\d+);>")


def make_line(**overrides: int) -> str:
    """Build a valid snapshot line; valve fields are written in hex like the firmware does."""
    fields = dict(DEFAULT_FIELDS)
    fields.update(overrides)
    parts = []
    for name, value in fields.items():
        text = f"{value:x}" if name.startswith("V") else str(value)
        parts.append(f"{name}={text};")
    return "".join(parts)


class FakeDevice:
    """Line-level stand-in for the graphitizer firmware.

    Replies to ``<GET_ALL;>`` with queued lines first, then with a line built
    from its current state. SET and pump commands update the state unless
    ``apply_commands`` is False.
    """

    def __init__(self, apply_commands: bool = True):
        self.state = dict(DEFAULT_FIELDS)
        self.apply_commands = apply_commands
        self.replies: deque[str] = deque()
        self.commands: list[str] = []
        self.available = True
        self.fail_writes = 0
        self.fail_reads = 0
        self.opened = 0
        self.closed = 0

    def queue(self, *lines: str) -> None:
        self.replies.extend(lines)

    def handle(self, command: str) -> str | None:
        self.commands.append(command)

        if command == "<GET_ALL;>":
            if self.replies:
                return self.replies.popleft()
            return make_line(**self.state)

        if self.apply_commands:
            match = _SET_RE.fullmatch(command)
            if match:
                self.state[match.group(1)] = int(match.group(2))
            elif command == "<PUMP_ON;>":
                self.state["PUMP"] = 1
            elif command == "<PUMP_OFF;>":
                self.state["PUMP"] = 0

        return None

    @property
    def snapshot_requests(self) -> int:
        return self.commands.count("<GET_ALL;>")


class FakeConnection:
    """Mimics SerialConnection on top of a FakeDevice."""

    def __init__(self, device: FakeDevice, port: str = "/dev/fake"):
        self.port = port
        self._device = device
        self._connected = False
        self._pending = b""

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> bool:
        if not self._device.available:
            return False
        self._device.opened += 1
        self._connected = True
        return True

    async def disconnect(self) -> None:
        self._device.closed += 1
        self._connected = False

    async def write(self, data: bytes) -> None:
        if not self._connected:
            raise ConnectionError("Not connected to serial port")
        if self._device.fail_writes > 0:
            self._device.fail_writes -= 1
            self._connected = False
            raise ConnectionError("write failed")
        await asyncio.sleep(0)
        reply = self._device.handle(data.decode("ascii"))
        self._pending = (reply + "\r\n").encode("ascii") if reply is not None else b""

    async def readline(self) -> bytes:
        if not self._connected:
            raise ConnectionError("Not connected to serial port")
        if self._device.fail_reads > 0:
            self._device.fail_reads -= 1
            self._connected = False
            raise ConnectionError("read failed")
        await asyncio.sleep(0)
        data, self._pending = self._pending, b""
        return data


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def gate(device: FakeDevice) -> ChannelGate:
    return ChannelGate(lambda: FakeConnection(device))


@pytest.fixture
def cache() -> SnapshotCache:
    return SnapshotCache()
