"""Snapshots of the latest values of a message's signals."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping


def _require(data: Mapping[str, Any], key: str, kind: type) -> Any:
    try:
        item = data[key]
    except KeyError:
        raise ValueError(f"missing field {key!r}") from None
    if not isinstance(item, kind) or (kind is int and isinstance(item, bool)):
        raise ValueError(f"field {key!r} must be of type {kind.__name__}, got {item!r}")
    return item


@dataclass
class SignalValue:
    """The latest value of one signal, rendered as text."""

    full_name: str
    signal: str
    value: str


def _signal_value_from_dict(data: Mapping[str, Any]) -> SignalValue:
    if not isinstance(data, Mapping):
        raise ValueError(f"signal value must be a mapping, got {data!r}")
    return SignalValue(
        full_name=_require(data, "full_name", str),
        signal=_require(data, "signal", str),
        value=_require(data, "value", str),
    )


@dataclass
class LatestSignalData:
    """The latest values of all signals in a message at a timestamp."""

    message: str
    timestamp: int
    values: list[SignalValue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """A JSON-compatible dictionary of this snapshot."""
        return {
            "message": self.message,
            "timestamp": self.timestamp,
            "values": [asdict(value) for value in self.values],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LatestSignalData:
        """Read a snapshot from a dictionary produced by :meth:`to_dict`."""
        return cls(
            message=_require(data, "message", str),
            timestamp=_require(data, "timestamp", int),
            values=[_signal_value_from_dict(item) for item in _require(data, "values", list)],
        )