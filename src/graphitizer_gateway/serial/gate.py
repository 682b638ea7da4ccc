"""Exclusive access to the device's serial channel.

The line protocol has no request IDs: a reply is only meaningful because it
follows its command. Every exchange therefore goes through
``ChannelGate.round_trip()`` (or ``send()`` for write-only commands), which
holds a lock for the whole write/read pair so the telemetry loop and API
requests can never interleave.
"""

import asyncio
import logging
from collections.abc import Callable

from graphitizer_gateway.core.exceptions import ChannelError
from graphitizer_gateway.serial.connection import SerialConnection

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], SerialConnection]


class ChannelGate:
    """Serialises command/reply round trips on a single serial connection.

    The gate is the only holder of the connection. After a write or read
    failure the connection is discarded and a new one is built from the
    factory before the next caller gets the lock.
    """

    def __init__(self, connection_factory: ConnectionFactory, encoding: str = "ascii"):
        """
        Initialize the gate.

        Args:
            connection_factory: Builds a new, unopened connection
            encoding: Text encoding of commands and replies
        """
        self._factory = connection_factory
        self._encoding = encoding
        self._connection: SerialConnection | None = None
        self._lock = asyncio.Lock()
        self._stats = {
            "round_trips": 0,
            "failures": 0,
            "reconnects": 0,
        }

    @property
    def connected(self) -> bool:
        """Whether a connection is currently open."""
        return self._connection is not None and self._connection.connected

    @property
    def busy(self) -> bool:
        """Whether a round trip is in progress."""
        return self._lock.locked()

    @property
    def stats(self) -> dict:
        """Get gate statistics."""
        return self._stats.copy()

    async def open(self) -> None:
        """
        Open the channel if it is not already open.

        Raises:
            ChannelError: If the port cannot be opened
        """
        async with self._lock:
            await self._ensure_open()

    async def close(self) -> None:
        """Close the channel. The next round trip reopens it."""
        async with self._lock:
            await self._drop()

    async def send(self, command: str) -> None:
        """
        Send one command line without reading a reply.

        Raises:
            ChannelError: If the channel could not be opened or written.
        """
        async with self._lock:
            connection = await self._ensure_open()
            try:
                await connection.write(command.encode(self._encoding))
            except ConnectionError as e:
                self._stats["failures"] += 1
                logger.warning("Send %s failed: %s", command, e)
                await self._reacquire()
                raise ChannelError(f"Send {command} failed: {e}") from e

            logger.info("Command sent: %s", command)

    async def round_trip(self, command: str) -> str:
        """
        Send one command line and read one reply line.

        Args:
            command: Command line, e.g. ``<GET_ALL;>``

        Returns:
            Reply line without the line delimiter. Empty if the device
            sent nothing before the read timeout.

        Raises:
            ChannelError: If the channel could not be opened, written or
                read. The channel has been re-acquired (or will be on the
                next call); retry the whole round trip.
        """
        async with self._lock:
            connection = await self._ensure_open()
            try:
                await connection.write(command.encode(self._encoding))
                raw = await connection.readline()
            except ConnectionError as e:
                self._stats["failures"] += 1
                logger.warning("Round trip %s failed: %s", command, e)
                await self._reacquire()
                raise ChannelError(f"Round trip {command} failed: {e}") from e

            self._stats["round_trips"] += 1
            reply = raw.decode(self._encoding, errors="replace").rstrip("\r\n")
            logger.debug("%s -> %r", command, reply)
            return reply

    async def _ensure_open(self) -> SerialConnection:
        if self._connection is not None and self._connection.connected:
            return self._connection

        await self._drop()
        connection = self._factory()
        if not await connection.connect():
            self._stats["failures"] += 1
            # Release the unopened connection's worker thread
            await connection.disconnect()
            raise ChannelError(f"Could not open {connection.port}")

        self._connection = connection
        return connection

    async def _drop(self) -> None:
        if self._connection is not None:
            connection, self._connection = self._connection, None
            await connection.disconnect()

    async def _reacquire(self) -> None:
        """Replace a failed connection with a fresh one; failure is left for the next caller."""
        self._stats["reconnects"] += 1
        try:
            await self._ensure_open()
            logger.info("Channel re-acquired")
        except ChannelError as e:
            logger.warning("Channel re-acquisition failed, next round trip will retry: %s", e)
