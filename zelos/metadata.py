"""A shared view of every known trace segment, updated by copy on write."""

from __future__ import annotations

import copy
import threading
from typing import Iterable, Iterator
from uuid import UUID

from . import ipc
from .segment import TraceSegment


def _new_segment(msg: ipc.IpcMessageWithId) -> TraceSegment:
    if isinstance(msg.msg, ipc.TraceSegmentStart):
        segment = TraceSegment.from_ipc(msg.segment_id, msg.msg)
    else:
        segment = TraceSegment.empty(msg.segment_id, msg.source_name)
    segment.apply(msg.msg)
    return segment


class TraceMetadata:
    """The segments, schemas and value tables seen so far.

    Readers work on a snapshot; every change installs a new mapping, so a
    reader never sees a half-applied update.
    """

    def __init__(self) -> None:
        self._segments: dict[UUID, TraceSegment] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_messages(cls, msgs: Iterable[ipc.IpcMessageWithId]) -> TraceMetadata:
        """Build metadata from a sequence of messages.

        Unlike :meth:`update`, an event for an unknown segment still creates
        an empty segment for it.
        """
        segments: dict[UUID, TraceSegment] = {}
        for msg in msgs:
            segment = segments.get(msg.segment_id)
            if segment is None:
                segments[msg.segment_id] = _new_segment(msg)
            else:
                segment.apply(msg.msg)
        metadata = cls()
        metadata._segments = segments
        return metadata

    def update(self, msg: ipc.IpcMessageWithId) -> None:
        """Fold ``msg`` into the metadata; events carry no metadata and are ignored."""
        if isinstance(msg.msg, ipc.TraceEvent):
            return
        with self._lock:
            segments = self._segments
            segment = segments.get(msg.segment_id)
            new_segment = _new_segment(msg) if segment is None else segment.update(msg.msg)
            self._segments = {**segments, msg.segment_id: new_segment}

    def as_ipc(self) -> list[ipc.IpcMessageWithId]:
        """Messages that rebuild this metadata when replayed."""
        segments = self._segments
        return [
            ipc.IpcMessageWithId(segment_id, segment.source, msg)
            for segment_id, segment in segments.items()
            for msg in segment.as_ipc()
        ]

    def segments(self) -> dict[UUID, TraceSegment]:
        """Copies of all segments, keyed by id."""
        return {segment_id: copy.deepcopy(seg) for segment_id, seg in self._segments.items()}

    def iter_segments(self) -> Iterator[TraceSegment]:
        """Copies of all segments, taken from one snapshot."""
        snapshot = list(self._segments.values())
        return (copy.deepcopy(segment) for segment in snapshot)

    def get_segment(self, segment_id: UUID) -> TraceSegment | None:
        """A copy of one segment, or None if it is unknown."""
        segment = self._segments.get(segment_id)
        return None if segment is None else copy.deepcopy(segment)

    def remove_segment(self, segment_id: UUID) -> None:
        """Forget a segment; unknown ids are ignored."""
        with self._lock:
            self._segments = {
                key: segment for key, segment in self._segments.items() if key != segment_id
            }