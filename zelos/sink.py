"""Subscriber ends of the trace router and the channels that feed them."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Protocol

from .filter import Filter
from .ipc import IpcMessageWithId

DEFAULT_CHANNEL_SIZE = 1024


class _ChannelState:
    """Shared state of a bounded single-loop channel."""

    __slots__ = ("capacity", "items", "closed", "waiters")

    def __init__(self, capacity: int | None) -> None:
        self.capacity = capacity
        self.items: deque[Any] = deque()
        self.closed = False
        self.waiters: list[asyncio.Future[None]] = []

    def full(self) -> bool:
        return self.capacity is not None and len(self.items) >= self.capacity

    def notify(self) -> None:
        waiters, self.waiters = self.waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    async def wait(self) -> None:
        waiter = asyncio.get_running_loop().create_future()
        self.waiters.append(waiter)
        await waiter

    def close(self) -> None:
        self.closed = True
        self.notify()


class _Sender:
    """Sending end of a channel."""

    def __init__(self, state: _ChannelState) -> None:
        self._state = state

    @property
    def closed(self) -> bool:
        return self._state.closed

    def send(self, msg: Any) -> None:
        """Queue ``msg`` without waiting.

        Raises BrokenPipeError once the channel is closed and asyncio.QueueFull
        when it is at capacity.
        """
        state = self._state
        if state.closed:
            raise BrokenPipeError("channel is closed")
        if state.full():
            raise asyncio.QueueFull
        state.items.append(msg)
        state.notify()

    try_send = send

    async def send_async(self, msg: Any) -> None:
        """Queue ``msg``, waiting for room; raises BrokenPipeError once closed."""
        state = self._state
        while True:
            if state.closed:
                raise BrokenPipeError("channel is closed")
            if not state.full():
                state.items.append(msg)
                state.notify()
                return
            await state.wait()

    def close(self) -> None:
        self._state.close()


class _Receiver:
    """Receiving end of a channel; iterating it ends when the channel closes."""

    def __init__(self, state: _ChannelState) -> None:
        self._state = state

    def __len__(self) -> int:
        return len(self._state.items)

    @property
    def closed(self) -> bool:
        return self._state.closed

    def try_recv(self) -> Any:
        """Take the next item; raises asyncio.QueueEmpty, or EOFError once closed and empty."""
        state = self._state
        if state.items:
            item = state.items.popleft()
            state.notify()
            return item
        if state.closed:
            raise EOFError("channel is closed")
        raise asyncio.QueueEmpty

    async def recv(self) -> Any:
        """Wait for the next item; raises EOFError once closed and empty."""
        while True:
            try:
                return self.try_recv()
            except asyncio.QueueEmpty:
                await self._state.wait()

    def drain(self) -> list[Any]:
        """Take every item queued right now."""
        state = self._state
        items = list(state.items)
        state.items.clear()
        state.notify()
        return items

    def close(self) -> None:
        """Close the channel; senders fail from now on."""
        self._state.close()

    def __aiter__(self) -> _Receiver:
        return self

    async def __anext__(self) -> Any:
        try:
            return await self.recv()
        except EOFError:
            raise StopAsyncIteration from None


def _channel(capacity: int | None = DEFAULT_CHANNEL_SIZE) -> tuple[_Sender, _Receiver]:
    state = _ChannelState(capacity)
    return _Sender(state), _Receiver(state)


class _SinkHandle(Protocol):
    async def send_async(self, msg: IpcMessageWithId) -> None: ...

    def close(self) -> None: ...


class TraceSink:
    """A subscriber's set of filters; only matching messages reach it."""

    def __init__(self) -> None:
        self.filters: tuple[Filter, ...] = ()

    def __repr__(self) -> str:
        return f"TraceSink(filters={list(self.filters)!r})"

    def subscribe(self, filter: Filter) -> None:
        """Add ``filter`` to this sink."""
        self.filters = (*self.filters, filter)

    def unsubscribe(self, filter: Filter) -> None:
        """Remove every filter equal to ``filter``."""
        self.filters = tuple(f for f in self.filters if f != filter)


class _FilteredSinkHandle:
    """Router side of a :class:`TraceSink`; never waits, fails when the subscriber falls behind."""

    def __init__(self, sink: TraceSink, sender: _Sender) -> None:
        self._sink = sink
        self._sender = sender

    async def send_async(self, msg: IpcMessageWithId) -> None:
        # One copy per matching filter, as subscribers may rely on it.
        for item in self._sink.filters:
            if item.matches(msg):
                self._sender.send(msg)

    def close(self) -> None:
        self._sender.close()


class _BlockingSinkHandle:
    """Router side of a subscription to everything; waits while the subscriber is full."""

    def __init__(self, sender: _Sender) -> None:
        self._sender = sender

    async def send_async(self, msg: IpcMessageWithId) -> None:
        await self._sender.send_async(msg)

    def close(self) -> None:
        self._sender.close()


def _filtered_sink(
    capacity: int | None = DEFAULT_CHANNEL_SIZE,
) -> tuple[TraceSink, _Receiver, _FilteredSinkHandle]:
    sender, receiver = _channel(capacity)
    sink = TraceSink()
    return sink, receiver, _FilteredSinkHandle(sink, sender)


def _blocking_sink(
    capacity: int | None = DEFAULT_CHANNEL_SIZE,
) -> tuple[_BlockingSinkHandle, _Receiver]:
    sender, receiver = _channel(capacity)
    return _BlockingSinkHandle(sender), receiver