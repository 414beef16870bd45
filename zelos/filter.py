"""Filters that select trace messages by segment, source and event."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from .ipc import IpcMessageWithId, TraceEvent

_WILDCARD = "*"


@dataclass(frozen=True)
class Filter:
    """Selects messages; a ``None`` part matches anything."""

    segment_id: UUID | None = None
    source_name: str | None = None
    event_name: str | None = None

    @classmethod
    def any(cls) -> Filter:
        """A filter that matches every message."""
        return cls()

    @classmethod
    def parse(cls, text: str) -> Filter:
        """Parse ``segment/source/event``, where each part may be ``*``."""
        segment, sep, rest = text.partition("/")
        if not sep:
            raise ValueError(f"Unable to split filter: {text!r}")
        source, sep, event = rest.partition("/")
        if not sep:
            raise ValueError(f"Unable to split filter: {text!r}")
        if segment == _WILDCARD:
            segment_id = None
        else:
            try:
                segment_id = UUID(segment)
            except ValueError:
                raise ValueError(f"Invalid segment id in filter: {segment!r}") from None
        return cls(
            segment_id=segment_id,
            source_name=None if source == _WILDCARD else source,
            event_name=None if event == _WILDCARD else event,
        )

    def matches(self, msg: IpcMessageWithId) -> bool:
        """Whether ``msg`` passes this filter.

        A filter naming an event only passes events of that name.
        """
        if self.segment_id is not None and self.segment_id != msg.segment_id:
            return False
        if self.source_name is not None and self.source_name != msg.source_name:
            return False
        if self.event_name is not None:
            return isinstance(msg.msg, TraceEvent) and msg.msg.name == self.event_name
        return True