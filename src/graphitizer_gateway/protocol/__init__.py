"""Graphitizer line protocol implementation."""

from graphitizer_gateway.protocol.codec import check_line, decode_frame, encode_command
from graphitizer_gateway.protocol.constants import SNAPSHOT_COMMAND
from graphitizer_gateway.protocol.frames import Frame
from graphitizer_gateway.protocol.registry import (
    DEFAULT_REGISTRY,
    CommandRequest,
    ConfirmationPolicy,
    ParameterClass,
    ParameterRegistry,
    ParameterSpec,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "SNAPSHOT_COMMAND",
    "CommandRequest",
    "ConfirmationPolicy",
    "Frame",
    "ParameterClass",
    "ParameterRegistry",
    "ParameterSpec",
    "check_line",
    "decode_frame",
    "encode_command",
]
