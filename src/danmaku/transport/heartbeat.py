"""Repeating timer used for protocol keepalives.

``Timer`` calls ``callback(context)`` every ``interval`` seconds until it is
stopped or garbage collected. Each call runs as its own task, so a slow or
failing callback neither delays nor ends the schedule, and ``stop`` does not
wait for calls already dispatched. Ticks are spaced ``interval`` after the
previous sleep finished; there is no wall-clock drift correction.

Example:
    >>> timer = Timer(lambda queue: queue.put_nowait(b"ping"), queue, interval=30.0)
    >>> ...
    >>> timer.stop()
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from danmaku.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

TimerCallback = Callable[[T], Awaitable[None] | None]


class Timer(Generic[T]):
    """A repeating timer bound to the running event loop.

    The schedule lives exactly as long as the handle: dropping the last
    reference to a Timer cancels it as if ``stop`` had been called.

    Args:
        callback: Sync or async function invoked with ``context`` on every tick
        context: Value passed to each invocation
        interval: Seconds between ticks (must be positive)
    """

    def __init__(self, callback: TimerCallback[T], context: T, interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._interval = interval
        self._inflight: set[asyncio.Task[None]] = set()
        # The loop coroutine must not reference self, or the handle could never be collected
        self._task: asyncio.Task[None] = asyncio.get_running_loop().create_task(
            _run_timer(callback, context, interval, self._inflight)
        )

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return not self._task.done()

    def stop(self) -> None:
        """Cancel future ticks. Idempotent; in-flight callbacks finish on their own."""
        if not self._task.done():
            self._task.cancel()
            logger.debug("danmaku.timer.stopped", interval=self._interval)

    def __enter__(self) -> Timer[T]:
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()

    def __del__(self) -> None:
        task = getattr(self, "_task", None)
        if task is None or task.done() or task.get_loop().is_closed():
            return
        task.cancel()


async def _run_timer(
    callback: TimerCallback[T],
    context: T,
    interval: float,
    inflight: set[asyncio.Task[None]],
) -> None:
    while True:
        await asyncio.sleep(interval)
        task = asyncio.create_task(_invoke(callback, context))
        inflight.add(task)
        task.add_done_callback(inflight.discard)


async def _invoke(callback: TimerCallback[T], context: T) -> None:
    try:
        result = callback(context)
        if asyncio.iscoroutine(result):
            await result
    except Exception as e:
        logger.warning("danmaku.timer.callback_error", error=str(e))
