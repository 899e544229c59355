"""Client handle for a live-room subscription.

Constructing a ``DanmakuClient`` starts a background session immediately and
returns without waiting for the connection. ``stop()`` (or dropping the last
reference to the handle) signals the session to shut down; events stop
arriving and the event channel finishes.

Example:
    >>> async with DanmakuClient("12345") as client:
    ...     async for event in client.events:
    ...         print(event.display_text())
"""

from __future__ import annotations

import asyncio
from typing import Any

from danmaku.config import ClientConfig
from danmaku.observability import get_logger
from danmaku.transport.channel import EventChannel
from danmaku.transport.session import ProtocolSession, SessionState

logger = get_logger(__name__)


class DanmakuClient:
    """Handle owning the stop signal of exactly one protocol session.

    Must be created inside a running event loop.

    Args:
        room_id: Room identifier; not validated, sent verbatim in the handshake
        sink: Channel for decoded events. A new one sized by
            ``config.event_queue_size`` is created when omitted.
        config: Endpoint, timing and decoding limits
    """

    def __init__(
        self,
        room_id: str,
        sink: EventChannel | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        config = config or ClientConfig()
        self.room_id = room_id
        self.events = sink if sink is not None else EventChannel(max_size=config.event_queue_size)
        self._stop_event = asyncio.Event()
        self._stopped = False
        self._session = ProtocolSession(room_id, self.events, self._stop_event, config)
        # The task holds the session, never the handle, so dropping the handle reaches __del__
        self._task: asyncio.Task[None] = asyncio.get_running_loop().create_task(
            self._session.run(), name=f"danmaku-session-{room_id}"
        )
        self._task.add_done_callback(_log_session_result)
        logger.info("danmaku.client.started", room_id=room_id)

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def running(self) -> bool:
        return not self._task.done()

    def stop(self) -> None:
        """Signal the session to close. Idempotent; fires the stop signal once."""
        if self._stopped:
            return
        self._stopped = True
        self._stop_event.set()
        logger.info("danmaku.client.stopped", room_id=self.room_id)

    async def wait_open(self) -> bool:
        """Wait until the connection is established.

        Returns:
            True if the session opened

        Raises:
            ConnectError: If the connection could not be established
            asyncio.CancelledError: If the session task was cancelled before opening
        """
        opened = asyncio.ensure_future(self._session.wait_opened())
        await asyncio.wait({opened, self._task}, return_when=asyncio.FIRST_COMPLETED)
        if opened.done() and opened.result():
            return True
        opened.cancel()
        await self.wait_closed()
        return False

    async def wait_closed(self) -> None:
        """Wait until the session reaches CLOSED.

        Raises:
            ConnectError: If the session never connected
        """
        await asyncio.shield(self._task)

    async def __aenter__(self) -> DanmakuClient:
        return self

    async def __aexit__(self, exc_type: Any, *args: Any) -> None:
        self.stop()
        if exc_type is None:
            await self.wait_closed()
        else:
            await asyncio.wait({self._task})

    def __del__(self) -> None:
        if getattr(self, "_stopped", True):
            return
        task = getattr(self, "_task", None)
        if task is None or task.done() or task.get_loop().is_closed():
            return
        self._stopped = True
        self._stop_event.set()


def _log_session_result(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        logger.info("danmaku.client.session_cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error("danmaku.client.session_failed", error=str(exc))
