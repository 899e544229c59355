"""Protocol session: one WebSocket connection to one live room.

A session moves through ``CONNECTING -> OPEN -> CLOSING -> CLOSED``. Once
open it runs three concurrent units of work:

- the send loop, draining the outbound byte queue into the socket
  (handshake first, then heartbeats);
- the heartbeat timer, enqueueing a keepalive frame every interval;
- the receive loop, racing the next socket message against the stop
  signal and forwarding decoded events to the consumer channel.

The receive loop owns the transition out of ``OPEN``. It leaves on socket
closure or read failure, when the consumer closes its channel, or when the
stop signal fires. There is no reconnection; a closed session stays closed.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from enum import Enum
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from danmaku.config import ClientConfig
from danmaku.errors import ChannelClosedError, CodecError, ConnectError, InvalidTransitionError
from danmaku.observability import get_logger, get_metrics
from danmaku.protocol.codec import build_handshake, heartbeat_frame, parse_message
from danmaku.transport.channel import EventChannel
from danmaku.transport.heartbeat import Timer

logger = get_logger(__name__)


class SessionState(str, Enum):
    """Session lifecycle states. CLOSED is terminal."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.CONNECTING: {SessionState.OPEN, SessionState.CLOSED},
    SessionState.OPEN: {SessionState.CLOSING},
    SessionState.CLOSING: {SessionState.CLOSED},
    SessionState.CLOSED: set(),  # Terminal state
}


def can_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """Check if a session may move from one state to another.

    Example:
        >>> can_transition(SessionState.OPEN, SessionState.CLOSING)
        True
        >>> can_transition(SessionState.CLOSED, SessionState.OPEN)
        False
    """
    return to_state in VALID_TRANSITIONS.get(from_state, set())


class ProtocolSession:
    """Owns the socket and the outbound queue for one room subscription.

    Args:
        room_id: Room identifier, sent verbatim in the handshake
        sink: Channel receiving decoded events; finished when the session closes
        stop_event: Set by the owner to request shutdown
        config: Endpoint, timing and decoding limits
    """

    def __init__(
        self,
        room_id: str,
        sink: EventChannel,
        stop_event: asyncio.Event,
        config: ClientConfig | None = None,
    ) -> None:
        self.room_id = room_id
        self._sink = sink
        self._stop_event = stop_event
        self._config = config or ClientConfig()
        self._state = SessionState.CONNECTING
        self._outbound: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._opened = asyncio.Event()
        self._was_opened = False
        self._logger = logger.bind(room_id=room_id)
        self._metrics = get_metrics()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def wait_opened(self) -> bool:
        """Wait until the session is OPEN or gave up; True if it opened."""
        await self._opened.wait()
        return self._was_opened

    def enqueue(self, message: bytes) -> None:
        """Queue raw bytes for the send loop, in order after anything already queued."""
        self._outbound.put_nowait(message)

    def _transition(self, new_state: SessionState) -> None:
        if not can_transition(self._state, new_state):
            raise InvalidTransitionError(
                from_state=self._state.value,
                to_state=new_state.value,
                details={"room_id": self.room_id},
            )
        self._metrics.increment_counter(
            "danmaku_session_transitions_total",
            {"from_state": self._state.value, "to_state": new_state.value},
        )
        self._logger.debug(
            "danmaku.session.transition", from_state=self._state.value, to_state=new_state.value
        )
        self._state = new_state

    async def run(self) -> None:
        """Connect, subscribe and pump events until the session closes.

        Raises:
            ConnectError: If the WebSocket connection cannot be established
        """
        ws = await self._connect()
        self._logger.info("danmaku.session.open")

        self.enqueue(build_handshake(self.room_id))
        timer = Timer(_enqueue_heartbeat, self, self._config.heartbeat_interval)
        send_task = asyncio.create_task(self._send_loop(ws))
        try:
            await self._receive_loop(ws)
        finally:
            await self._shutdown(ws, timer, send_task)

    async def _connect(self) -> Any:
        url = self._config.url
        self._logger.info("danmaku.session.connecting", url=url)
        # wait_opened() must return however connecting ends, including cancellation
        try:
            try:
                ws = await websockets.connect(
                    url,
                    open_timeout=self._config.open_timeout,
                    close_timeout=self._config.close_timeout,
                    max_size=self._config.max_message_size,
                    # Liveness is handled by the protocol heartbeat frames
                    ping_interval=None,
                )
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                self._logger.error("danmaku.session.connect_failed", url=url, error=str(e))
                self._abort_connect()
                raise ConnectError(url, str(e) or type(e).__name__) from e
            except asyncio.CancelledError:
                self._logger.info("danmaku.session.connect_cancelled", url=url)
                self._abort_connect()
                raise
            self._transition(SessionState.OPEN)
            self._was_opened = True
        finally:
            self._opened.set()
        self._logger.info("danmaku.session.connected", url=url)
        return ws

    def _abort_connect(self) -> None:
        self._transition(SessionState.CLOSED)
        self._sink.finish()

    async def _send_loop(self, ws: Any) -> None:
        while True:
            message = await self._outbound.get()
            if message is None:  # sentinel: no more messages
                break
            try:
                await ws.send(message)
                self._logger.debug("danmaku.session.sent", size=len(message))
            except (OSError, WebSocketException) as e:
                # Best effort: a failed write never stops the loop
                self._metrics.increment_counter("danmaku_send_errors_total")
                self._logger.error("danmaku.session.send_error", error=str(e))
        self._logger.info("danmaku.session.sender_closed")

    async def _receive_loop(self, ws: Any) -> None:
        stop_waiter = asyncio.create_task(self._stop_event.wait())
        try:
            while True:
                recv_task = asyncio.create_task(ws.recv())
                done, _ = await asyncio.wait(
                    {recv_task, stop_waiter}, return_when=asyncio.FIRST_COMPLETED
                )
                # A read that completed together with the stop signal is discarded
                if stop_waiter in done:
                    await _cancel_task(recv_task)
                    self._logger.info("danmaku.session.stop_requested")
                    return
                try:
                    message = recv_task.result()
                except ConnectionClosed as e:
                    self._logger.info("danmaku.session.socket_closed", reason=str(e))
                    return
                except (OSError, WebSocketException) as e:
                    self._logger.warning("danmaku.session.recv_error", error=str(e))
                    return
                if not self._forward(message):
                    return
        finally:
            await _cancel_task(stop_waiter)

    def _forward(self, message: bytes | str) -> bool:
        """Decode one socket message and hand its events to the sink.

        Returns False when the consumer is gone and the session should close.
        """
        self._metrics.increment_counter("danmaku_messages_received_total")
        data = message.encode("utf-8") if isinstance(message, str) else message
        try:
            events = parse_message(
                data,
                max_depth=self._config.max_nesting_depth,
                max_decompressed_size=self._config.max_decompressed_size,
            )
        except CodecError as e:
            self._metrics.increment_counter("danmaku_decode_errors_total")
            self._logger.warning("danmaku.session.decode_error", error=e.message, size=len(data))
            return True

        for event in events:
            try:
                self._sink.send(event)
            except ChannelClosedError:
                self._logger.info("danmaku.session.consumer_gone")
                return False
            self._metrics.increment_counter("danmaku_events_forwarded_total")
        return True

    async def _shutdown(
        self, ws: Any, timer: Timer[ProtocolSession], send_task: asyncio.Task[None]
    ) -> None:
        self._transition(SessionState.CLOSING)
        self._outbound.put_nowait(None)
        timer.stop()
        try:
            await asyncio.wait_for(send_task, timeout=self._config.close_timeout)
        except asyncio.TimeoutError:
            self._logger.warning("danmaku.session.sender_drain_timeout")
        with suppress(OSError, WebSocketException):
            await ws.close()
        self._sink.finish()
        self._transition(SessionState.CLOSED)
        self._logger.info("danmaku.session.closed")


def _enqueue_heartbeat(session: ProtocolSession) -> None:
    session.enqueue(heartbeat_frame())
    get_metrics().increment_counter("danmaku_heartbeats_sent_total")


async def _cancel_task(task: asyncio.Task[Any]) -> None:
    task.cancel()
    with suppress(asyncio.CancelledError, OSError, WebSocketException):
        await task
