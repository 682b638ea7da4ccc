"""Exception hierarchy for the gateway.

ValidationError and DecodeError subclass ValueError, ChannelError subclasses
ConnectionError, so callers that only know the builtin types still catch them.
"""


class GatewayError(Exception):
    """Base class for all gateway errors."""


class ValidationError(GatewayError, ValueError):
    """Unknown parameter, or a missing, malformed or out-of-range value."""


class DecodeError(GatewayError, ValueError):
    """A reply line is malformed or truncated."""


class ChannelError(GatewayError, ConnectionError):
    """Writing to or reading from the serial channel failed."""


class SinkError(GatewayError):
    """The time-series store rejected or failed a write."""
