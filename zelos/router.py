"""Publish-subscribe router for trace messages."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Iterable

from .ipc import IpcMessageWithId
from .sink import (
    DEFAULT_CHANNEL_SIZE,
    TraceSink,
    _blocking_sink,
    _channel,
    _filtered_sink,
    _Receiver,
    _Sender,
    _SinkHandle,
)
from .store import MetadataOnlyStore, Store

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_CHANNEL_SIZE", "TraceRouter"]


async def _chain(
    metadata: Iterable[IpcMessageWithId], receiver: _Receiver
) -> AsyncIterator[IpcMessageWithId]:
    for msg in metadata:
        yield msg
    async for msg in receiver:
        yield msg


class TraceRouter:
    """Keeps a store up to date and forwards every message to its subscribers.

    Messages go in through :meth:`sender`; :meth:`run` does the forwarding
    until its cancel event is set, then forwards what is still queued.
    """

    def __init__(self, store: Store | None = None) -> None:
        self._store: Store = store if store is not None else MetadataOnlyStore()
        self._sender, self._receiver = _channel(DEFAULT_CHANNEL_SIZE)
        self._sinks: list[_SinkHandle] = []
        self._started = False
        self._stopped = False

    def sender(self) -> _Sender:
        """The channel end through which messages enter the router."""
        return self._sender

    async def _forward(self, msg: IpcMessageWithId) -> None:
        try:
            self._store.update(msg)
        except Exception:
            logger.exception("Error while updating the store")

        closed = []
        for handle in list(self._sinks):
            try:
                await handle.send_async(msg)
            except (BrokenPipeError, asyncio.QueueFull) as exc:
                logger.debug("Dropping sink after send failure: %r", exc)
                closed.append(handle)
        for handle in closed:
            if handle in self._sinks:
                self._sinks.remove(handle)

    async def _next_message(self, cancelled: asyncio.Future) -> IpcMessageWithId | None:
        try:
            return self._receiver.try_recv()
        except asyncio.QueueEmpty:
            pass
        receiving = asyncio.ensure_future(self._receiver.recv())
        done, _ = await asyncio.wait({receiving, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        if receiving in done:
            return receiving.result()
        receiving.cancel()
        return None

    async def run(self, cancel: asyncio.Event) -> None:
        """Forward messages until ``cancel`` is set, then forward what is queued and stop."""
        if self._started:
            raise RuntimeError("router has already been started")
        self._started = True
        cancelled = asyncio.ensure_future(cancel.wait())
        try:
            while not cancel.is_set():
                msg = await self._next_message(cancelled)
                if msg is not None:
                    await self._forward(msg)

            logger.debug("Shutting down...")
            start = time.perf_counter()
            pending = self._receiver.drain()
            for msg in pending:
                await self._forward(msg)
            logger.debug(
                "Shut down complete, took %.6fs processed %d messages",
                time.perf_counter() - start,
                len(pending),
            )
        finally:
            cancelled.cancel()
            self._stopped = True
            self._receiver.close()
            for handle in self._sinks:
                handle.close()
            self._sinks.clear()

    def _register(self, handle: _SinkHandle) -> list[IpcMessageWithId]:
        if self._stopped:
            raise RuntimeError("Router subscription channel closed")
        metadata = self._store.metadata_as_ipc()
        self._sinks.append(handle)
        return metadata

    async def subscribe_all_blocking(self) -> tuple[_Receiver, list[IpcMessageWithId]]:
        """Subscribe to every message, holding the router back while the receiver is full.

        Returns the receiver and the store's metadata at the moment of subscribing.
        """
        handle, receiver = _blocking_sink(DEFAULT_CHANNEL_SIZE)
        return receiver, self._register(handle)

    async def subscribe(self) -> tuple[TraceSink, _Receiver, list[IpcMessageWithId]]:
        """Subscribe through a sink whose filters choose the messages.

        A subscriber that falls a full channel behind is dropped.
        """
        sink, receiver, handle = _filtered_sink(DEFAULT_CHANNEL_SIZE)
        return sink, receiver, self._register(handle)

    async def subscribe_all_blocking_stream(self) -> AsyncIterator[IpcMessageWithId]:
        """Like :meth:`subscribe_all_blocking`, as one stream: metadata first, then messages."""
        receiver, metadata = await self.subscribe_all_blocking()
        return _chain(metadata, receiver)

    async def subscribe_stream(self) -> tuple[TraceSink, AsyncIterator[IpcMessageWithId]]:
        """Like :meth:`subscribe`, with metadata and messages as one stream."""
        sink, receiver, metadata = await self.subscribe()
        return sink, _chain(metadata, receiver)