"""Stores that the trace router keeps up to date."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .ipc import IpcMessageWithId
from .metadata import TraceMetadata


class Store(ABC):
    """Receives every routed message and describes what it holds as messages."""

    @abstractmethod
    def metadata_as_ipc(self) -> list[IpcMessageWithId]:
        """The store's metadata as messages, for new subscribers."""

    @abstractmethod
    def update(self, msg: IpcMessageWithId) -> None:
        """Record ``msg`` in the store."""


class MetadataOnlyStore(Store):
    """A store that keeps trace metadata and discards event data."""

    def __init__(self) -> None:
        self.metadata = TraceMetadata()

    def metadata_as_ipc(self) -> list[IpcMessageWithId]:
        """The known segments as messages."""
        return self.metadata.as_ipc()

    def update(self, msg: IpcMessageWithId) -> None:
        """Fold ``msg`` into the metadata."""
        self.metadata.update(msg)