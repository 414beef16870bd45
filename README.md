# zelos

`zelos` is a small, dependency-free library for producing and routing
structured trace data inside one Python process, built on `asyncio`.

A program describes the events it emits as typed schemas, emits events
against those schemas, and hands the messages to a router. The router keeps
a store of trace segments and their schemas up to date and forwards every
message to its subscribers, each of which can narrow what it receives with
filters.

## Installing

```
pip install .
```

The tests use pytest and pytest-asyncio, available through the `test` extra:

```
pip install ".[test]"
pytest
```

## Modules

- `zelos.data_type` – `DataType`, the field types an event can carry:
  `INT8` … `INT64`, `UINT8` … `UINT64`, `FLOAT32`, `FLOAT64`,
  `TIMESTAMP_NS`, `BINARY`, `STRING` and `BOOLEAN`. `DataType.parse`
  reads the textual names (`"uint64"`, `"timestamp[ns]"`, `"bool"`, and the
  aliases `"float"` and `"double"`); `is_numeric()` is false only for
  timestamps, binary and strings. `from_duckdb_type` / `to_duckdb_type`
  map to and from DuckDB column type names such as `"UBIGINT"` or `"BLOB"`
  (names only; nothing here talks to a database).
- `zelos.value` – `Value(kind, payload)`, a payload tagged with its
  `DataType`. Construction checks the payload's Python type and, for
  integers, its range; `FLOAT32` payloads are rounded to single precision.
  Floats compare by bit pattern, so NaN equals NaN and values work as
  dictionary keys. `get(data_type)` returns the payload only if the type
  matches, `as_number()` returns the payload of integer values, and
  `from_json_as_type` / `to_json` convert to and from JSON-style values,
  with binary as base64.
- `zelos.ipc` – the messages: `TraceSegmentStart`, `TraceSegmentEnd`,
  `TraceEventSchema` (a list of `TraceEventFieldMetadata`),
  `TraceEventFieldNamedValues` (names for particular values of one field)
  and `TraceEvent`, each wrapped in an `IpcMessageWithId` carrying the
  segment id and source name.
- `zelos.segment` – `TraceSegment`, everything known about one segment:
  source, start and end time in nanoseconds, and event schemas with their
  value tables. `apply` folds a message in place, `update` returns a
  changed copy, `as_ipc` returns the messages that rebuild it, and
  `signals` / `signals_matching` list its fields as `Signal`s.
- `zelos.metadata` – `TraceMetadata`, the set of known segments. `update`
  installs a new mapping for each change, so readers always see a whole
  snapshot; `get_segment`, `segments` and `iter_segments` hand out copies.
  `from_messages` builds metadata from a sequence of messages and `as_ipc`
  replays it.
- `zelos.store` – `Store`, the abstract base the router updates, and
  `MetadataOnlyStore`, which keeps a `TraceMetadata` and discards event
  data.
- `zelos.filter` – `Filter`, selecting messages by segment, source and
  event name. `Filter.parse("segment/source/event")` takes `*` for any
  part; a filter that names an event passes only `TraceEvent`s of that name.
- `zelos.signals` – `Signal` (one field of one event in a segment, with
  `key_string()`, `fully_qualified_table_name()` and `to_dict()`) and
  `SignalKey`, parsed from `segment/source/event.field` with `*` allowed
  as the segment.
- `zelos.latest` – `LatestSignalData` and `SignalValue`, a snapshot of the
  latest rendered values of a message's signals, with `to_dict` /
  `from_dict`.
- `zelos.sink` – `TraceSink`, a subscriber's list of filters.
- `zelos.router` – `TraceRouter`, the pub-sub hub.
- `zelos.source` – `TraceSource`, the interface a program uses to declare
  and emit events.
- `zelos.clock` – `now_time_ns()`, the wall-clock time in nanoseconds.

## Emitting events

```python
import asyncio

from zelos.data_type import DataType
from zelos.router import TraceRouter
from zelos.source import TraceSource
from zelos.store import MetadataOnlyStore


async def main():
    router = TraceRouter(MetadataOnlyStore())
    cancel = asyncio.Event()
    router_task = asyncio.create_task(router.run(cancel))

    with TraceSource("hello-world", router.sender()) as source:
        hello = (
            source.build_event("hello")
            .add_field("count", DataType.UINT64, None)
            .add_field("timestamp", DataType.UINT64, "ns")
            .build()
        )
        hello.build().insert("count", 1).emit()

    cancel.set()
    await router_task


asyncio.run(main())
```

Creating a `TraceSource` sends a segment start with a fresh time-ordered
segment id; `close()` (or leaving the `with` block) sends the segment end
once. `add_value_table` attaches names to particular values of a field.

`EventBuilder.insert` takes either a `Value` or a plain payload, which is
given the field's type unless a `data_type` is passed. Errors are raised
as exceptions:

- registering an event name twice on one source – `ValueError`;
- `get_event` for an unregistered name – `KeyError`;
- inserting a field the schema does not have – `ValueError`;
- inserting a value of the wrong type – `TypeError`.

Every emitting method has an `_async` variant that waits for room in the
router's channel (1024 messages) instead of raising `asyncio.QueueFull`.

## Running the router

`TraceRouter.run(cancel)` forwards messages until the `asyncio.Event`
`cancel` is set, then forwards whatever is still queued, closes all
subscriber channels and returns. A router can be run once; subscribing
after it has stopped raises `RuntimeError`.

## Subscribing

`TraceRouter.subscribe()` returns a `TraceSink`, a receiver and the
metadata the store already holds, so a late subscriber can rebuild the
state of every segment first. A sink receives nothing until it is given
filters, and gets one copy of a message for each filter it matches:

```python
from zelos.filter import Filter

sink, receiver, metadata = await router.subscribe()
sink.subscribe(Filter.parse("*/hello-world/hello"))

async for msg in receiver:
    print(msg.msg)
```

A filtered subscriber that falls a full channel (1024 messages) behind is
dropped by the router. `subscribe_all_blocking()` instead receives every
message and makes the router wait while its channel is full. The
`subscribe_stream()` and `subscribe_all_blocking_stream()` variants return
one async iterator yielding the metadata and then the live messages.
Iteration over a receiver ends when the router shuts down.

## Addressing signals

```python
from zelos.signals import SignalKey

key = SignalKey.parse("*/hello-world/hello.count")
signals = list(segment.signals_matching([key]))
```

## What it does not do

Everything happens inside one process and one event loop. There is no
network transport for publishing to or subscribing from another process,
no command-line tool, and no storage of event data: `MetadataOnlyStore`
keeps only segments, schemas and value tables in memory.