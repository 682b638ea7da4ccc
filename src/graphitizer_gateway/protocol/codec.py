"""Reply decoding and command encoding for the graphitizer line protocol."""

from graphitizer_gateway.core.exceptions import DecodeError
from graphitizer_gateway.protocol.constants import (
    COMMAND_CLOSE,
    COMMAND_OPEN,
    FIELD_PATTERN,
    FIELD_SEPARATOR,
    FIELD_TERMINATOR,
    FRAME_MAX_LEN,
    FRAME_MIN_FIELDS,
    FRAME_MIN_LEN,
    FRAME_SENTINEL,
    SET_PREFIX,
    VALUE_PATTERNS,
)
from graphitizer_gateway.protocol.frames import Frame
from graphitizer_gateway.protocol.registry import DEFAULT_REGISTRY, ParameterRegistry


def check_line(line: str) -> None:
    """
    Check the overall shape of a reply line.

    Args:
        line: Reply line without the line delimiter

    Raises:
        DecodeError: If the line is too short or too long, does not start
            with the sentinel field, does not end with the terminator, or
            has fewer well-formed segments than a full snapshot
    """
    if len(line) < FRAME_MIN_LEN:
        raise DecodeError(f"Line too short: {len(line)} chars")

    if len(line) > FRAME_MAX_LEN:
        raise DecodeError(f"Line too long: {len(line)} chars")

    if not line.startswith(FRAME_SENTINEL):
        raise DecodeError(f"Line does not start with {FRAME_SENTINEL!r}: {line[:8]!r}")

    if not line.endswith(FIELD_TERMINATOR):
        raise DecodeError("Line does not end with field terminator")

    segments = len(FIELD_PATTERN.findall(line))
    if segments < FRAME_MIN_FIELDS:
        raise DecodeError(f"Only {segments} well-formed fields, need {FRAME_MIN_FIELDS}")


def decode_frame(line: str, registry: ParameterRegistry = DEFAULT_REGISTRY) -> Frame:
    """
    Decode a snapshot reply into a Frame.

    The line is checked as a whole first; then every ``NAME=VALUE;``
    segment is parsed. Level-class values are hexadecimal, all others
    decimal. Any segment that fails to parse fails the whole line.

    Args:
        line: Reply line, with or without a trailing CR/LF
        registry: Registry deciding the numeric base of each field

    Returns:
        Decoded Frame

    Raises:
        DecodeError: If the line or any field is malformed

    Example:
        >>> frame = decode_frame(line)
        >>> frame["V00"]
        255
    """
    line = line.rstrip("\r\n")
    check_line(line)

    fields: dict[str, int] = {}
    # Trailing terminator leaves one empty item after split
    for segment in line.split(FIELD_TERMINATOR)[:-1]:
        parts = segment.split(FIELD_SEPARATOR)
        if len(parts) != 2 or not parts[0]:
            raise DecodeError(f"Malformed field {segment!r}")

        name, text = parts
        base = registry.wire_base(name)
        if not VALUE_PATTERNS[base].fullmatch(text):
            raise DecodeError(f"Bad value for field {name}: {text!r}")
        fields[name] = int(text, base)

    return Frame(fields, raw=line)


def encode_command(name: str, value: int | None = None) -> str:
    """
    Build an outbound command line.

    Toggles have no value and are sent as ``<NAME;>``; everything else
    as ``<SET_NAME=VALUE;>`` with VALUE in decimal. No validation is
    done here; validate with ParameterRegistry first.

    Example:
        >>> encode_command("V00", 255)
        '<SET_V00=255;>'
        >>> encode_command("PUMP_ON")
        '<PUMP_ON;>'
    """
    if value is None:
        return f"{COMMAND_OPEN}{name}{COMMAND_CLOSE}"
    return f"{COMMAND_OPEN}{SET_PREFIX}{name}{FIELD_SEPARATOR}{value}{COMMAND_CLOSE}"
