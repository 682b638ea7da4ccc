"""Serial port connection to the graphitizer microcontroller.

Uses direct pyserial with run_in_executor() for async compatibility. All
blocking calls go through one worker thread, so reads and writes never run
in parallel on the port.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

import serial
from serial import SerialException

from graphitizer_gateway.protocol.constants import LINE_DELIMITER, READ_TIMEOUT

logger = logging.getLogger(__name__)


class SerialConnection:
    """Owns one open pyserial port.

    A SerialConnection is not reused after a failure: the ChannelGate
    closes it and builds a fresh one.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = READ_TIMEOUT,
    ):
        """
        Initialize serial connection.

        Args:
            port: Serial port path (e.g., '/dev/ttyACM0')
            baudrate: Communication speed (default: 115200)
            timeout: Read timeout in seconds; bounds a single readline()
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout

        self._serial: serial.Serial | None = None
        self._connected = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="serial")

    @property
    def connected(self) -> bool:
        """Check if currently connected."""
        return self._connected and self._serial is not None and self._serial.is_open

    async def connect(self) -> bool:
        """
        Open serial port connection.

        The firmware expects 8 data bits, even parity, one stop bit.

        Returns:
            True if connection successful, False otherwise
        """
        if self.connected:
            logger.debug("Already connected to %s", self.port)
            return True

        try:
            logger.info("Connecting to serial port %s at %d baud", self.port, self.baudrate)

            self._serial = serial.Serial()
            self._serial.port = self.port
            self._serial.baudrate = self.baudrate
            self._serial.bytesize = serial.EIGHTBITS
            self._serial.parity = serial.PARITY_EVEN
            self._serial.stopbits = serial.STOPBITS_ONE
            self._serial.timeout = self.timeout
            self._serial.write_timeout = self.timeout

            loop = asyncio.get_event_loop()
            await loop.run_in_executor(self._executor, self._serial.open)

            self._connected = True
            logger.info("Successfully connected to %s", self.port)
            return True

        except (OSError, SerialException) as e:
            logger.error("Failed to connect to %s: %s", self.port, e)
            self._serial = None
            self._connected = False
            return False

    async def disconnect(self) -> None:
        """Close serial port connection."""
        if self._serial is not None and self._serial.is_open:
            logger.info("Disconnecting from %s", self.port)
            try:
                self._serial.close()
            except (OSError, SerialException) as e:
                logger.error("Error closing serial port: %s", e)

        self._serial = None
        self._connected = False
        self._executor.shutdown(wait=False)

    def _blocking_write(self, data: bytes) -> None:
        if not self._serial or not self._serial.is_open:
            raise ConnectionError("Not connected to serial port")
        # Drop stale input so the next line read belongs to this command
        self._serial.reset_input_buffer()
        self._serial.write(data)
        self._serial.flush()

    def _blocking_readline(self) -> bytes:
        if not self._serial or not self._serial.is_open:
            raise ConnectionError("Not connected to serial port")
        return self._serial.read_until(LINE_DELIMITER)

    async def write(self, data: bytes) -> None:
        """
        Write to serial port and wait until it is transmitted.

        Args:
            data: Bytes to write

        Raises:
            ConnectionError: If not connected or the write fails
        """
        if not self.connected:
            raise ConnectionError("Not connected to serial port")

        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(self._executor, self._blocking_write, data)
        except (OSError, SerialException) as e:
            logger.error("Write error: %s", e)
            self._connected = False
            raise ConnectionError(str(e)) from e

    async def readline(self) -> bytes:
        """
        Read one line, up to and including the line delimiter.

        Returns whatever arrived before the read timeout if the delimiter
        never came; an empty result means the device stayed silent.

        Raises:
            ConnectionError: If not connected or the read fails
        """
        if not self.connected:
            raise ConnectionError("Not connected to serial port")

        try:
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(self._executor, self._blocking_readline)
        except (OSError, SerialException) as e:
            logger.error("Read error: %s", e)
            self._connected = False
            raise ConnectionError(str(e)) from e

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()
