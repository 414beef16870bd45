"""Emitting trace segments, event schemas and events from one source."""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Iterable, Mapping, Protocol, Union
from uuid import UUID

from . import ipc
from .clock import now_time_ns
from .data_type import DataType
from .value import Payload, Value

logger = logging.getLogger(__name__)

FieldValues = Union[Mapping[str, Value], Iterable[tuple[str, Value]]]
NamedValues = Union[Mapping[Value, str], Iterable[tuple[Value, str]]]


class _MessageSender(Protocol):
    def send(self, msg: ipc.IpcMessageWithId) -> None: ...

    async def send_async(self, msg: ipc.IpcMessageWithId) -> None: ...


def _uuid7() -> UUID:
    """A time-ordered UUID (version 7) from the current time and random bits."""
    millis = time.time_ns() // 1_000_000
    value = (millis & ((1 << 48) - 1)) << 80 | int.from_bytes(os.urandom(10), "big")
    value = (value & ~(0xF << 76)) | (0x7 << 76)
    value = (value & ~(0x3 << 62)) | (0x2 << 62)
    return UUID(int=value)


class TraceSourceEvent:
    """A registered event schema of a source, able to emit events of that schema."""

    def __init__(
        self,
        segment_id: UUID,
        source_name: str,
        sender: _MessageSender,
        name: str,
        schema: list[ipc.TraceEventFieldMetadata],
    ) -> None:
        self.id = segment_id
        self.source_name = source_name
        self._sender = sender
        self.name = name
        self.schema = schema

    def __repr__(self) -> str:
        return f"TraceSourceEvent(name={self.name!r}, schema={self.schema!r})"

    def _message(self, time_ns: int, fields: FieldValues) -> ipc.IpcMessageWithId:
        event = ipc.TraceEvent(time_ns=time_ns, name=self.name, fields=dict(fields))
        return ipc.IpcMessageWithId(self.id, self.source_name, event)

    def emit(self, time_ns: int, fields: FieldValues) -> None:
        """Send an event with ``fields`` at ``time_ns``."""
        self._sender.send(self._message(time_ns, fields))

    async def emit_async(self, time_ns: int, fields: FieldValues) -> None:
        """Send an event, waiting for room in the channel."""
        await self._sender.send_async(self._message(time_ns, fields))

    def build(self) -> EventBuilder:
        """A builder for one event of this schema."""
        return EventBuilder(self)


class TraceSource:
    """One trace segment: announces itself on creation and ends on :meth:`close`.

    Use it as a context manager to end the segment on exit.
    """

    def __init__(self, source_name: str, sender: _MessageSender) -> None:
        self.id = _uuid7()
        self.source_name = source_name
        self._sender = sender
        self._events: dict[str, TraceSourceEvent] = {}
        self._lock = threading.Lock()
        self._closed = False

        logger.debug("TraceSource created: id=%s source_name=%r", self.id, source_name)
        try:
            self.emit_start()
        except Exception as exc:
            logger.error("Error emitting trace segment start: %s", exc)

    def __repr__(self) -> str:
        return f"TraceSource(id={self.id}, source_name={self.source_name!r})"

    def __enter__(self) -> TraceSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _wrap(self, msg: ipc.IpcMessage) -> ipc.IpcMessageWithId:
        return ipc.IpcMessageWithId(self.id, self.source_name, msg)

    def _emit(self, msg: ipc.IpcMessage) -> None:
        self._sender.send(self._wrap(msg))

    def emit_start(self) -> None:
        """Send the segment start message stamped with the current time."""
        self._emit(ipc.TraceSegmentStart(time_ns=now_time_ns(), source_name=self.source_name))

    def emit_end(self) -> None:
        """Send the segment end message stamped with the current time."""
        self._emit(ipc.TraceSegmentEnd(time_ns=now_time_ns()))

    def close(self) -> None:
        """End the segment; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        try:
            self.emit_end()
        except Exception as exc:
            logger.debug("Error emitting trace segment end: %s", exc)

    def add_value_table(self, name: str, field_name: str, values: NamedValues) -> None:
        """Send names for particular values of field ``field_name`` of event ``name``."""
        self._emit(
            ipc.TraceEventFieldNamedValues(
                event_name=name, field_name=field_name, values=dict(values)
            )
        )

    def _new_event(
        self, name: str, schema: Iterable[ipc.TraceEventFieldMetadata]
    ) -> TraceSourceEvent:
        with self._lock:
            if name in self._events:
                raise ValueError(f"Event={name} already exists")
        return TraceSourceEvent(self.id, self.source_name, self._sender, name, list(schema))

    def _register(self, event: TraceSourceEvent) -> TraceSourceEvent:
        with self._lock:
            self._events[event.name] = event
        return event

    def add_event(
        self, name: str, schema: Iterable[ipc.TraceEventFieldMetadata]
    ) -> TraceSourceEvent:
        """Register and announce an event schema; a name may be registered once."""
        event = self._new_event(name, schema)
        self._emit(ipc.TraceEventSchema(name=name, fields=list(event.schema)))
        return self._register(event)

    async def add_event_async(
        self, name: str, schema: Iterable[ipc.TraceEventFieldMetadata]
    ) -> TraceSourceEvent:
        """Like :meth:`add_event`, waiting for room in the channel."""
        event = self._new_event(name, schema)
        message = ipc.TraceEventSchema(name=name, fields=list(event.schema))
        await self._sender.send_async(self._wrap(message))
        return self._register(event)

    def get_event(self, name: str) -> TraceSourceEvent:
        """The registered event called ``name``; raises KeyError if there is none."""
        with self._lock:
            try:
                return self._events[name]
            except KeyError:
                raise KeyError(f"Event not found: {name}") from None

    def build_event(self, name: str) -> TraceSourceEventBuilder:
        """A builder for a new event schema called ``name``."""
        return TraceSourceEventBuilder(self, name)


class EventBuilder:
    """Collects field values for one event and emits it."""

    def __init__(self, parent: TraceSourceEvent) -> None:
        self._parent = parent
        self._data: dict[str, Value] = {}

    def _take(self) -> dict[str, Value]:
        data, self._data = self._data, {}
        return data

    def insert(
        self, name: str, value: Value | Payload, data_type: DataType | None = None
    ) -> EventBuilder:
        """Set field ``name``, checking it against the schema; returns the builder.

        A plain payload takes ``data_type``, or else the field's own type.
        Raises ValueError for an unknown field and TypeError for a wrong type.
        """
        field = next((f for f in self._parent.schema if f.name == name), None)
        if field is None:
            raise ValueError(f"Field '{name}' not found in schema")
        if not isinstance(value, Value):
            value = Value(data_type if data_type is not None else field.data_type, value)
        if value.data_type() != field.data_type:
            raise TypeError(
                f"Type mismatch for field '{name}': expected {field.data_type}, "
                f"found {value.data_type()}"
            )
        self._data[name] = value
        return self

    def emit(self) -> None:
        """Emit the event at the current time."""
        self._parent.emit(now_time_ns(), self._take())

    def emit_at(self, time_ns: int) -> None:
        """Emit the event at ``time_ns``."""
        self._parent.emit(time_ns, self._take())

    async def emit_async(self) -> None:
        """Emit the event at the current time, waiting for room in the channel."""
        await self._parent.emit_async(now_time_ns(), self._take())

    async def emit_at_async(self, time_ns: int) -> None:
        """Emit the event at ``time_ns``, waiting for room in the channel."""
        await self._parent.emit_async(time_ns, self._take())


class TraceSourceEventBuilder:
    """Collects the fields of a new event schema and registers it with a source."""

    def __init__(self, source: TraceSource, name: str) -> None:
        self._source = source
        self._name = name
        self._schema: dict[str, ipc.TraceEventFieldMetadata] = {}

    def add_field(
        self, name: str, data_type: DataType, unit: str | None = None
    ) -> TraceSourceEventBuilder:
        """Add or replace field ``name``; returns the builder."""
        self._schema[name] = ipc.TraceEventFieldMetadata(name, DataType(data_type), unit)
        return self

    def build(self) -> TraceSourceEvent:
        """Register the schema with the source."""
        return self._source.add_event(self._name, self._schema.values())

    async def build_async(self) -> TraceSourceEvent:
        """Register the schema with the source, waiting for room in the channel."""
        return await self._source.add_event_async(self._name, self._schema.values())