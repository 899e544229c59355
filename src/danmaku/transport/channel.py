"""Consumer-facing event channel.

A single-producer, single-consumer queue between a session's receive loop
and whoever displays the events. The producer ``send``s events and calls
``finish`` when the session ends; the consumer iterates with ``async for``
(iteration stops once the session has finished and the buffer is drained)
and may ``close`` its side to tell the session nobody is listening anymore.

The channel is unbounded unless ``max_size`` is given. A bounded channel
never blocks the producer: it drops the oldest undelivered event instead.
"""

from __future__ import annotations

import asyncio
from collections import deque

from danmaku.errors import ChannelClosedError
from danmaku.models.event import DanmakuEvent
from danmaku.observability import get_logger, get_metrics

logger = get_logger(__name__)


class EventChannel:
    """Async queue of decoded events with explicit close semantics.

    Example:
        >>> channel = EventChannel()
        >>> channel.send(event)
        >>> channel.finish()
        >>> [e async for e in channel]
        [event]
    """

    def __init__(self, max_size: int | None = None) -> None:
        if max_size is not None and max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._buffer: deque[DanmakuEvent] = deque()
        self._max_size = max_size
        self._ready = asyncio.Event()
        self._finished = False
        self._closed = False
        self.dropped = 0

    @property
    def max_size(self) -> int | None:
        return self._max_size

    @property
    def finished(self) -> bool:
        """True once the producer has signalled that no more events will come."""
        return self._finished

    @property
    def closed(self) -> bool:
        """True once the consumer has closed its side."""
        return self._closed

    def __len__(self) -> int:
        return len(self._buffer)

    def send(self, event: DanmakuEvent) -> None:
        """Append ``event`` for the consumer.

        Raises:
            ChannelClosedError: If the consumer closed the channel or the
                producer already finished it
        """
        if self._closed or self._finished:
            raise ChannelClosedError(details={"finished": self._finished, "closed": self._closed})
        if self._max_size is not None and len(self._buffer) >= self._max_size:
            self._buffer.popleft()
            self.dropped += 1
            get_metrics().increment_counter("danmaku_events_dropped_total")
            logger.debug("danmaku.channel.event_dropped", dropped=self.dropped)
        self._buffer.append(event)
        self._ready.set()

    def finish(self) -> None:
        """Producer side: no further events. Buffered events stay readable."""
        self._finished = True
        self._ready.set()

    def close(self) -> None:
        """Consumer side: stop receiving and discard anything still buffered."""
        self._closed = True
        self._buffer.clear()
        self._ready.set()

    def get_nowait(self) -> DanmakuEvent | None:
        """Pop the next buffered event, or None if the buffer is empty."""
        if self._buffer:
            return self._buffer.popleft()
        return None

    async def recv(self) -> DanmakuEvent | None:
        """Wait for the next event; None once the channel is finished and drained."""
        while True:
            if self._buffer:
                return self._buffer.popleft()
            if self._finished or self._closed:
                return None
            self._ready.clear()
            await self._ready.wait()

    def __aiter__(self) -> EventChannel:
        return self

    async def __anext__(self) -> DanmakuEvent:
        event = await self.recv()
        if event is None:
            raise StopAsyncIteration
        return event
