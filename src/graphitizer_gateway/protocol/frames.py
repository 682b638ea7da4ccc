"""Snapshot frame returned by the device."""

from collections.abc import Iterator, Mapping


class Frame(Mapping[str, int]):
    """
    One validated snapshot of device state.

    An immutable, ordered mapping of field name to integer value, in the
    order the fields appeared on the wire. Frames are only built by
    ``decode_frame()``; the raw line is kept for logging.

    Attributes:
        raw: The reply line the frame was decoded from
    """

    __slots__ = ("_fields", "raw")

    def __init__(self, fields: Mapping[str, int], raw: str = ""):
        object.__setattr__(self, "_fields", dict(fields))
        object.__setattr__(self, "raw", raw)

    def __setattr__(self, name, value):
        raise AttributeError("Frame is immutable")

    def __getitem__(self, name: str) -> int:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Frame):
            return self._fields == other._fields
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._fields.items()))

    def to_dict(self) -> dict[str, int]:
        """Plain dict copy, e.g. for JSON responses or database points."""
        return dict(self._fields)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"Frame(fields={len(self._fields)}, raw_len={len(self.raw)})"
