"""Core application functionality."""

from graphitizer_gateway.core.cache import SnapshotCache
from graphitizer_gateway.core.config import Settings, setup_logging
from graphitizer_gateway.core.exceptions import (
    ChannelError,
    DecodeError,
    GatewayError,
    SinkError,
    ValidationError,
)

__all__ = [
    "ChannelError",
    "DecodeError",
    "GatewayError",
    "SinkError",
    "SnapshotCache",
    "Settings",
    "ValidationError",
    "setup_logging",
]
