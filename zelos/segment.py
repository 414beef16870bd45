"""Accumulated metadata of one trace segment."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Iterable, Iterator
from uuid import UUID

from . import ipc
from .signals import Signal, SignalKey
from .value import Value


@dataclass
class TraceEventField:
    """A field of an event schema and the names given to its values."""

    metadata: ipc.TraceEventFieldMetadata
    values: dict[Value, str] = field(default_factory=dict)

    @classmethod
    def from_ipc(cls, msg: ipc.TraceEventFieldMetadata) -> TraceEventField:
        """A field with no named values."""
        return cls(msg)


@dataclass
class TraceEventSchema:
    """The fields of one event within a segment."""

    name: str
    fields: list[TraceEventField] = field(default_factory=list)

    @classmethod
    def from_ipc(cls, msg: ipc.TraceEventSchema) -> TraceEventSchema:
        """A schema built from a schema message."""
        return cls(msg.name, [TraceEventField.from_ipc(meta) for meta in msg.fields])

    def get_field(self, field_name: str) -> TraceEventField | None:
        """The first field named ``field_name``, or None."""
        return next((f for f in self.fields if f.metadata.name == field_name), None)

    def metadata(self) -> Iterator[ipc.TraceEventFieldMetadata]:
        """The metadata of each field in order."""
        return (f.metadata for f in self.fields)


@dataclass(frozen=True)
class TraceEventSchemaRef:
    """An event schema together with the segment holding it."""

    segment: TraceSegment
    event_schema: TraceEventSchema


@dataclass(frozen=True)
class TraceEventFieldRef:
    """A field together with its event schema and segment."""

    segment: TraceSegment
    event_schema: TraceEventSchema
    field: TraceEventField

    def as_signal(self) -> Signal:
        """The signal this field describes; only integer named values enter its value table."""
        values = self.field.values
        value_table = None
        if values:
            value_table = {
                number: name
                for value, name in values.items()
                if (number := value.as_number()) is not None
            }
        meta = self.field.metadata
        return Signal(
            data_segment_id=self.segment.id,
            source=self.segment.source,
            message=self.event_schema.name,
            signal=meta.name,
            data_type=meta.data_type,
            unit=meta.unit,
            value_table=value_table,
        )

    def table_key(self) -> str:
        """``segment/source/event`` naming the table of this field's event."""
        return f"{self.segment.id}/{self.segment.source}/{self.event_schema.name}"


@dataclass
class TraceSegment:
    """Everything known about a segment: source, time span and event schemas."""

    id: UUID
    source: str
    start_time_ns: int | None = None
    end_time_ns: int | None = None
    schemas: dict[str, TraceEventSchema] = field(default_factory=dict)

    @classmethod
    def empty(cls, segment_id: UUID, source_name: str) -> TraceSegment:
        """A segment for which no start message has been seen."""
        return cls(segment_id, source_name)

    @classmethod
    def from_ipc(cls, segment_id: UUID, start: ipc.TraceSegmentStart) -> TraceSegment:
        """A segment created from its start message."""
        return cls(segment_id, start.source_name, start_time_ns=start.time_ns)

    def apply(self, msg: ipc.IpcMessage) -> None:
        """Fold ``msg`` into this segment in place.

        Schemas are replaced rather than changed, so copies made by
        :meth:`update` never see each other's changes.
        """
        match msg:
            case ipc.TraceSegmentStart(time_ns=time_ns, source_name=source_name):
                self.source = source_name
                if self.start_time_ns is None or time_ns < self.start_time_ns:
                    self.start_time_ns = time_ns
            case ipc.TraceSegmentEnd(time_ns=time_ns):
                self.end_time_ns = time_ns
            case ipc.TraceEventSchema():
                if msg.name not in self.schemas:
                    self.schemas[msg.name] = TraceEventSchema.from_ipc(msg)
            case ipc.TraceEventFieldNamedValues():
                schema = self.schemas.get(msg.event_name)
                if schema is not None:
                    self.schemas[msg.event_name] = _with_named_values(
                        schema, msg.field_name, msg.values
                    )
            case ipc.TraceEvent():
                pass

    def update(self, msg: ipc.IpcMessage) -> TraceSegment:
        """A copy of this segment with ``msg`` applied."""
        new = dataclasses.replace(self, schemas=dict(self.schemas))
        new.apply(msg)
        return new

    def maybe_event(self, event_name: str) -> TraceEventSchemaRef | None:
        """A reference to the schema of ``event_name``, if known."""
        schema = self.schemas.get(event_name)
        return None if schema is None else TraceEventSchemaRef(self, schema)

    def field_refs(self) -> Iterator[TraceEventFieldRef]:
        """References to every field of every schema."""
        for schema in self.schemas.values():
            for item in schema.fields:
                yield TraceEventFieldRef(self, schema, item)

    def field_refs_matching(self, signal_keys: Iterable[SignalKey]) -> Iterator[TraceEventFieldRef]:
        """References to the fields selected by ``signal_keys``, in key order."""
        for key in signal_keys:
            ref = self.maybe_field_ref_matching(key)
            if ref is not None:
                yield ref

    def maybe_field_ref_matching(self, key: SignalKey) -> TraceEventFieldRef | None:
        """The field in this segment selected by ``key``, if any."""
        if key.data_segment_id is not None and key.data_segment_id != self.id:
            return None
        if key.source != self.source:
            return None
        schema = self.schemas.get(key.message)
        if schema is None:
            return None
        item = schema.get_field(key.signal)
        return None if item is None else TraceEventFieldRef(self, schema, item)

    def signals(self) -> Iterator[Signal]:
        """Every signal in this segment."""
        return (ref.as_signal() for ref in self.field_refs())

    def signals_matching(self, signal_keys: Iterable[SignalKey]) -> Iterator[Signal]:
        """The signals selected by ``signal_keys``."""
        return (ref.as_signal() for ref in self.field_refs_matching(signal_keys))

    def as_ipc(self) -> list[ipc.IpcMessage]:
        """Messages that rebuild this segment when applied to an empty one."""
        msgs: list[ipc.IpcMessage] = []
        if self.start_time_ns is not None:
            msgs.append(ipc.TraceSegmentStart(self.start_time_ns, self.source))
        for event_name, schema in self.schemas.items():
            msgs.append(ipc.TraceEventSchema(schema.name, list(schema.metadata())))
            msgs.extend(
                ipc.TraceEventFieldNamedValues(event_name, item.metadata.name, dict(item.values))
                for item in schema.fields
                if item.values
            )
        if self.end_time_ns is not None:
            msgs.append(ipc.TraceSegmentEnd(self.end_time_ns))
        return msgs


def _with_named_values(
    schema: TraceEventSchema, field_name: str, values: dict[Value, str]
) -> TraceEventSchema:
    target = schema.get_field(field_name)
    if target is None:
        return TraceEventSchema(schema.name, list(schema.fields))
    fields = [
        TraceEventField(item.metadata, {**item.values, **values}) if item is target else item
        for item in schema.fields
    ]
    return TraceEventSchema(schema.name, fields)