"""Protocol constants for the graphitizer line protocol."""

import re

# ============================================================================
# Reply Line Structure
# ============================================================================

FRAME_SENTINEL = "V00="  # Every snapshot line starts with the first valve field
FIELD_TERMINATOR = ";"
FIELD_SEPARATOR = "="
LINE_DELIMITER = b"\n"

FRAME_MIN_LEN = 169
FRAME_MAX_LEN = 214
FRAME_MIN_FIELDS = 28

# Loose shape check for a single "NAME=VALUE;" segment
FIELD_PATTERN = re.compile(r"\w{3,4}=\w{1,4};")

# Value syntax per wire base, no "_" separators or whitespace
VALUE_PATTERNS = {
    10: re.compile(r"[+-]?[0-9]+"),
    16: re.compile(r"[+-]?[0-9A-Fa-f]+"),
}

# ============================================================================
# Commands
# ============================================================================

COMMAND_OPEN = "<"
COMMAND_CLOSE = ";>"
SET_PREFIX = "SET_"
SNAPSHOT_COMMAND = "<GET_ALL;>"

# ============================================================================
# Parameters
# ============================================================================

LEVEL_PREFIX = "V"  # Level-class fields are hex-encoded in replies
LEVEL_PARAMS = tuple(f"V{i:02d}" for i in range(0, 9))
THRESHOLD_PARAMS = tuple(f"T{i:02d}" for i in range(1, 9))
PUMP_ON = "PUMP_ON"
PUMP_OFF = "PUMP_OFF"
PUMP_STATE_FIELD = "PUMP"

LEVEL_MAX = 255
THRESHOLD_MAX = 999

# ============================================================================
# Timing (seconds)
# ============================================================================

SETTLE_DELAY = 0.05  # After sending a command, before the first poll
LEVEL_POLL_DELAY = 0.05
TOGGLE_POLL_DELAY = 0.08  # Pump state settles slower than valves
SAMPLE_RETRY_DELAY = 0.02  # After an invalid snapshot line
CONFIRM_TIMEOUT = 30.0
TELEMETRY_INTERVAL = 1.0
READ_TIMEOUT = 1.0
