"""Unbounded multi-producer, single-consumer event channel.

Wraps :class:`asyncio.Queue` (no ``maxsize``) with explicit sender
handles so end-of-stream can be detected the same way a closed pipe
is: once every :class:`Sender` has been closed and the backlog is
drained, :meth:`EventChannel.receive` returns ``None``.

Ordering: events are delivered strictly in the order they were sent,
across all senders combined.  Nothing is coalesced or dropped while the
channel is open.

Closing the receiving side with :meth:`EventChannel.close` discards the
backlog; any later :meth:`Sender.send` raises
:class:`~lapwatch._errors.ChannelClosedError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Final, Self

from lapwatch._errors import ChannelClosedError
from lapwatch._events import Event

logger = logging.getLogger(__name__)

_END_OF_STREAM: Final = object()


class Sender:
    """Producer-side handle onto an :class:`EventChannel`.

    Obtain one per producer from :meth:`EventChannel.sender`.  Usable as
    a context manager; leaving the block closes the handle.
    """

    def __init__(self, channel: EventChannel, name: str) -> None:
        self._channel = channel
        self._name = name
        self._closed = False

    @property
    def name(self) -> str:
        """Label used in log messages."""
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: Event) -> None:
        """Enqueue *event* without blocking.

        Raises:
            ChannelClosedError: If this sender or the receiving side has
                been closed.
        """
        if self._closed:
            msg = f"Sender '{self._name}' is closed"
            raise ChannelClosedError(msg)
        self._channel._put(event)

    def close(self) -> None:
        """Release this handle.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._channel._release_sender()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class EventChannel:
    """Ordered, unbounded event queue with a single consumer."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._open_senders = 0
        self._closed = False

    def sender(self, name: str = "sender") -> Sender:
        """Create a new producer handle.

        Raises:
            ChannelClosedError: If the receiving side is closed.
        """
        if self._closed:
            msg = "Cannot attach a sender to a closed channel"
            raise ChannelClosedError(msg)
        self._open_senders += 1
        return Sender(self, name)

    @property
    def closed(self) -> bool:
        """Whether the receiving side has been closed."""
        return self._closed

    @property
    def pending(self) -> int:
        """Number of queued items not yet received."""
        return self._queue.qsize()

    async def receive(self) -> Event | None:
        """Wait for the next event.

        Returns:
            The next event in send order, or ``None`` once the channel
            is closed or every sender has been released and the backlog
            is empty.
        """
        while not self._closed:
            item = await self._queue.get()
            if item is _END_OF_STREAM:
                if self._open_senders == 0:
                    return None
                # a new sender attached after the last one closed
                continue
            return item  # type: ignore[return-value]
        return None

    def close(self) -> int:
        """Close the receiving side and discard any queued events.

        Returns:
            The number of discarded events.
        """
        self._closed = True
        discarded = 0
        while not self._queue.empty():
            if self._queue.get_nowait() is not _END_OF_STREAM:
                discarded += 1
        if discarded:
            logger.debug("Discarded %d queued event(s) on close", discarded)
        return discarded

    # -- Sender callbacks ----------------------------------------------------

    def _put(self, item: Event) -> None:
        if self._closed:
            msg = "Receiver is closed"
            raise ChannelClosedError(msg)
        self._queue.put_nowait(item)

    def _release_sender(self) -> None:
        self._open_senders -= 1
        if self._open_senders == 0 and not self._closed:
            self._queue.put_nowait(_END_OF_STREAM)
