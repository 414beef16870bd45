"""Signals (single fields of trace events) and keys that select them."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from .data_type import DataType

_KEY_PATTERN = re.compile(r"([*\w-]+)/([^/.]+)/([^.]+)\.(.+)")


@dataclass
class Signal:
    """One field of one event within a trace segment."""

    data_segment_id: UUID
    source: str
    message: str
    signal: str
    data_type: DataType
    unit: str | None = None
    value_table: dict[int, str] | None = None

    def key(self) -> SignalKey:
        """The key that identifies exactly this signal."""
        return SignalKey(self.data_segment_id, self.source, self.message, self.signal)

    def key_string(self) -> str:
        """The key as text, ``segment/source/message.signal``."""
        return f"{self.data_segment_id}/{self.source}/{self.message}.{self.signal}"

    def fully_qualified_table_name(self) -> str:
        """The quoted name of the table holding this signal's message."""
        return f'"{self.data_segment_id}"."{self.source}/{self.message}"'

    def to_dict(self) -> dict[str, Any]:
        """A JSON-compatible dictionary, leaving out unset unit and value table."""
        data: dict[str, Any] = {
            "data_segment_id": str(self.data_segment_id),
            "source": self.source,
            "message": self.message,
            "signal": self.signal,
            "data_type": str(self.data_type),
        }
        if self.unit is not None:
            data["unit"] = self.unit
        if self.value_table is not None:
            data["value_table"] = {str(number): name for number, name in self.value_table.items()}
        return data


@dataclass(frozen=True)
class SignalKey:
    """Identifies a signal; a ``None`` segment id matches every segment."""

    data_segment_id: UUID | None
    source: str
    message: str
    signal: str

    @classmethod
    def parse(cls, text: str) -> SignalKey:
        """Parse ``segment/source/message.signal``, where segment may be ``*``."""
        match = _KEY_PATTERN.fullmatch(text)
        if match is None:
            raise ValueError(f"Could not parse signal key: {text}")
        segment, source, message, signal = match.groups()
        if segment == "*":
            segment_id = None
        else:
            try:
                segment_id = UUID(segment)
            except ValueError:
                raise ValueError(f"Invalid segment id {segment!r} in signal key: {text}") from None
        return cls(segment_id, source, message, signal)

    def matches(self, signal: Signal) -> bool:
        """Whether this key selects ``signal``."""
        segment_matches = self.data_segment_id is None or self.data_segment_id == signal.data_segment_id
        return (
            segment_matches
            and self.source == signal.source
            and self.message == signal.message
            and self.signal == signal.signal
        )