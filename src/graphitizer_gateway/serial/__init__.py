"""Serial communication layer."""

from graphitizer_gateway.serial.connection import SerialConnection
from graphitizer_gateway.serial.gate import ChannelGate

__all__ = ["ChannelGate", "SerialConnection"]
