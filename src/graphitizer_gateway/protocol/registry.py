"""Static catalogue of controllable device parameters.

Three disjoint classes of parameter exist:

- level: valve openings ``V00``..``V08``, 0..255, decimal in commands and
  hexadecimal in snapshot replies.
- threshold: temperature setpoints ``T01``..``T08``, 0..999, decimal both ways.
- toggle: ``PUMP_ON`` / ``PUMP_OFF``, no value; they drive the ``PUMP`` field.

The registry performs no I/O and is safe to share between tasks.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from graphitizer_gateway.core.exceptions import ValidationError
from graphitizer_gateway.protocol.constants import (
    LEVEL_MAX,
    LEVEL_PARAMS,
    LEVEL_PREFIX,
    PUMP_OFF,
    PUMP_ON,
    PUMP_STATE_FIELD,
    THRESHOLD_MAX,
    THRESHOLD_PARAMS,
    VALUE_PATTERNS,
)

_NUMERIC_RE = VALUE_PATTERNS[10]


class ParameterClass(Enum):
    """Parameter classes known to the device."""

    LEVEL = "level"
    THRESHOLD = "threshold"
    TOGGLE = "toggle"


class ConfirmationPolicy(Enum):
    """How a write is confirmed after it has been sent."""

    MATCH_VALUE = "match_value"  # poll until the field equals the written value
    MATCH_STATE = "match_state"  # poll until the state field reaches the toggle's state
    SNAPSHOT = "snapshot"  # return one fresh snapshot, no polling


@dataclass(frozen=True)
class ParameterSpec:
    """Description of a single parameter."""

    name: str
    kind: ParameterClass
    base: int
    policy: ConfirmationPolicy
    min_value: int | None = None
    max_value: int | None = None
    state_field: str | None = None
    state_value: int | None = None

    @property
    def takes_value(self) -> bool:
        return self.kind is not ParameterClass.TOGGLE


@dataclass(frozen=True)
class CommandRequest:
    """A validated write request: parameter name and parsed value (None for toggles)."""

    name: str
    value: int | None = None


class ParameterRegistry:
    """Read-only lookup of parameter specs by name."""

    def __init__(self, specs: Iterable[ParameterSpec]):
        self._specs: dict[str, ParameterSpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise ValueError(f"Duplicate parameter: {spec.name}")
            self._specs[spec.name] = spec

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    @property
    def names(self) -> list[str]:
        return list(self._specs)

    def names_of(self, kind: ParameterClass) -> list[str]:
        """Names of all parameters of one class, in registration order."""
        return [s.name for s in self._specs.values() if s.kind is kind]

    def is_known_parameter(self, name: str) -> bool:
        return name in self._specs

    def spec(self, name: str) -> ParameterSpec:
        """Get the spec for *name*.

        Raises:
            ValidationError: If the parameter is unknown.
        """
        try:
            return self._specs[name]
        except KeyError:
            raise ValidationError(f"Unknown parameter: {name!r}") from None

    def encoding_base(self, name: str) -> int:
        return self.spec(name).base

    def confirmation_policy(self, name: str) -> ConfirmationPolicy:
        return self.spec(name).policy

    @staticmethod
    def wire_base(field: str) -> int:
        """Numeric base of a snapshot field, including fields that are read-only."""
        return 16 if field.startswith(LEVEL_PREFIX) else 10

    def validate(self, name: str, raw_value: str | None = None) -> CommandRequest:
        """Check a name/value pair and return the parsed request.

        Args:
            name: Parameter name as received from the caller.
            raw_value: Decimal value string, or None/"" for toggles.

        Returns:
            CommandRequest carrying the integer value.

        Raises:
            ValidationError: If the name is unknown or the value is missing,
                non-numeric, out of range, or given to a toggle.
        """
        spec = self.spec(name)

        if not spec.takes_value:
            if raw_value:
                raise ValidationError(f"Parameter {name} does not take a value")
            return CommandRequest(name=name)

        if raw_value is None or not _NUMERIC_RE.fullmatch(raw_value):
            raise ValidationError(f"Invalid value for {name}: {raw_value!r}")

        value = int(raw_value, 10)
        if value < spec.min_value or value > spec.max_value:
            raise ValidationError(f"Value {value} out of range {spec.min_value}..{spec.max_value} for {name}")

        return CommandRequest(name=name, value=value)

    def is_valid_value(self, name: str, raw_value: str | None = None) -> bool:
        try:
            self.validate(name, raw_value)
        except ValidationError:
            return False
        return True


def build_default_registry() -> ParameterRegistry:
    """Registry matching the graphitizer firmware."""
    specs: list[ParameterSpec] = []

    for name in LEVEL_PARAMS:
        specs.append(
            ParameterSpec(
                name=name,
                kind=ParameterClass.LEVEL,
                base=16,
                policy=ConfirmationPolicy.MATCH_VALUE,
                min_value=0,
                max_value=LEVEL_MAX,
            )
        )

    for name in THRESHOLD_PARAMS:
        specs.append(
            ParameterSpec(
                name=name,
                kind=ParameterClass.THRESHOLD,
                base=10,
                policy=ConfirmationPolicy.SNAPSHOT,
                min_value=0,
                max_value=THRESHOLD_MAX,
            )
        )

    for name, state in ((PUMP_ON, 1), (PUMP_OFF, 0)):
        specs.append(
            ParameterSpec(
                name=name,
                kind=ParameterClass.TOGGLE,
                base=10,
                policy=ConfirmationPolicy.MATCH_STATE,
                state_field=PUMP_STATE_FIELD,
                state_value=state,
            )
        )

    return ParameterRegistry(specs)


DEFAULT_REGISTRY = build_default_registry()
