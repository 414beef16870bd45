from uuid import UUID

import pytest

from zelos.data_type import DataType
from zelos.ipc import (
    IpcMessageWithId,
    TraceEvent,
    TraceEventFieldMetadata,
    TraceEventSchema,
    TraceSegmentStart,
)
from zelos.store import MetadataOnlyStore, Store
from zelos.value import Value

SEGMENT_ID = UUID(int=1)


def wrap(msg):
    return IpcMessageWithId(SEGMENT_ID, "src", msg)


def test_store_is_abstract():
    with pytest.raises(TypeError):
        Store()


def test_empty_store_has_no_metadata():
    assert MetadataOnlyStore().metadata_as_ipc() == []


def test_metadata_only_store_keeps_metadata():
    store = MetadataOnlyStore()
    start = wrap(TraceSegmentStart(4, "src"))
    schema = wrap(TraceEventSchema("hello", [TraceEventFieldMetadata("x", DataType.INT32)]))
    store.update(start)
    store.update(schema)
    assert store.metadata_as_ipc() == [start, schema]


def test_metadata_only_store_drops_events():
    store = MetadataOnlyStore()
    start = wrap(TraceSegmentStart(4, "src"))
    store.update(start)
    store.update(wrap(TraceEvent(5, "hello", {"x": Value(DataType.INT32, 1)})))
    assert store.metadata_as_ipc() == [start]
    assert store.metadata.get_segment(SEGMENT_ID).schemas == {}


def test_custom_store_subclass():
    class Recording(Store):
        def __init__(self):
            self.seen = []

        def metadata_as_ipc(self):
            return list(self.seen)

        def update(self, msg):
            self.seen.append(msg)

    store = Recording()
    event = wrap(TraceEvent(5, "hello", {}))
    store.update(event)
    assert store.metadata_as_ipc() == [event]