"""
Lossy multi-subscriber broadcast of state-change signals.

Each receiver owns a bounded buffer. Publishing never waits: when a
receiver's buffer is full the oldest signal is dropped and counted as
missed. Consumers are expected to re-read the state store rather than
replay signals one by one.
"""

import asyncio
import logging
import weakref
from collections import deque
from typing import Optional

from .errors import NotifierClosed
from .types import StateUpdated

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 64


class UpdateReceiver:
    """
    One subscriber's view of the notifier.

    Only observes signals published after it was created.
    Use ``await recv()`` or ``async for signal in receiver``.
    """

    def __init__(self, capacity: int):
        self._buffer: deque[StateUpdated] = deque(maxlen=capacity)
        self._ready = asyncio.Event()
        self._closed = False
        self._missed = 0

    @property
    def missed(self) -> int:
        """Number of signals dropped because this receiver fell behind."""
        return self._missed

    @property
    def pending(self) -> int:
        """Number of buffered, unread signals."""
        return len(self._buffer)

    @property
    def closed(self) -> bool:
        """True once the notifier closed (buffered signals may remain)."""
        return self._closed

    def _deliver(self, signal: StateUpdated) -> None:
        if len(self._buffer) == self._buffer.maxlen:
            self._missed += 1
        self._buffer.append(signal)
        self._ready.set()

    def _close(self) -> None:
        self._closed = True
        self._ready.set()

    def try_recv(self) -> Optional[StateUpdated]:
        """
        Take the oldest buffered signal without waiting.

        Returns:
            Signal, or None if nothing is buffered

        Raises:
            NotifierClosed: If closed and drained
        """
        if self._buffer:
            return self._buffer.popleft()
        if self._closed:
            raise NotifierClosed("Update notifier closed")
        return None

    async def recv(self) -> StateUpdated:
        """
        Wait for the next signal.

        Raises:
            NotifierClosed: If closed and drained
        """
        while not self._buffer:
            if self._closed:
                raise NotifierClosed("Update notifier closed")
            self._ready.clear()
            await self._ready.wait()
        return self._buffer.popleft()

    def __aiter__(self) -> "UpdateReceiver":
        return self

    async def __anext__(self) -> StateUpdated:
        try:
            return await self.recv()
        except NotifierClosed:
            raise StopAsyncIteration


class UpdateNotifier:
    """
    Bounded broadcast channel for StateUpdated signals.

    - publish() is non-blocking and delivers to every live receiver
    - subscribe() returns an independent receiver
    - close() wakes all receivers; they drain then report closure

    Receivers are held weakly, so a consumer that drops its receiver
    stops costing the publisher anything.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._receivers: "weakref.WeakSet[UpdateReceiver]" = weakref.WeakSet()
        self._closed = False
        self._published = 0

    @property
    def capacity(self) -> int:
        """Per-receiver buffer size."""
        return self._capacity

    @property
    def receiver_count(self) -> int:
        """Number of live receivers."""
        return len(self._receivers)

    @property
    def published(self) -> int:
        """Total signals published."""
        return self._published

    @property
    def closed(self) -> bool:
        """True once close() was called."""
        return self._closed

    def subscribe(self) -> UpdateReceiver:
        """Create a receiver for signals published from now on."""
        receiver = UpdateReceiver(self._capacity)
        if self._closed:
            receiver._close()
        else:
            self._receivers.add(receiver)
        return receiver

    def unsubscribe(self, receiver: UpdateReceiver) -> None:
        """Detach a receiver; it will see no further signals."""
        self._receivers.discard(receiver)

    def publish(self, signal: Optional[StateUpdated] = None) -> int:
        """
        Deliver a signal to every receiver without waiting.

        Returns:
            Number of receivers the signal was delivered to
        """
        if self._closed:
            return 0
        if signal is None:
            signal = StateUpdated()
        self._published += 1
        receivers = list(self._receivers)
        for receiver in receivers:
            receiver._deliver(signal)
        return len(receivers)

    def close(self) -> None:
        """Close the channel. Idempotent."""
        if self._closed:
            return
        self._closed = True
        for receiver in list(self._receivers):
            receiver._close()
        self._receivers = weakref.WeakSet()
        logger.debug(f"Update notifier closed after {self._published} signals")
