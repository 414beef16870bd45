"""Trace messages passed between the parts of a trace pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union
from uuid import UUID

from .data_type import DataType
from .value import Value


@dataclass(frozen=True)
class TraceSegmentStart:
    """Marks the start of a trace segment."""

    time_ns: int
    source_name: str


@dataclass(frozen=True)
class TraceSegmentEnd:
    """Marks the end of a trace segment."""

    time_ns: int


@dataclass(frozen=True)
class TraceEventFieldMetadata:
    """Name, type and optional unit of one field of an event."""

    name: str
    data_type: DataType
    unit: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "data_type", DataType(self.data_type))


@dataclass
class TraceEventSchema:
    """The fields that events of one name carry."""

    name: str
    fields: list[TraceEventFieldMetadata] = field(default_factory=list)


@dataclass
class TraceEventFieldNamedValues:
    """Names given to particular values of one event field."""

    event_name: str
    field_name: str
    values: dict[Value, str] = field(default_factory=dict)


@dataclass
class TraceEvent:
    """One event with its field values at a point in time."""

    time_ns: int
    name: str
    fields: dict[str, Value] = field(default_factory=dict)


IpcMessage = Union[
    TraceSegmentStart,
    TraceSegmentEnd,
    TraceEventSchema,
    TraceEventFieldNamedValues,
    TraceEvent,
]


@dataclass
class IpcMessageWithId:
    """A trace message tagged with the segment and source it belongs to."""

    segment_id: UUID
    source_name: str
    msg: IpcMessage