"""Socket session lifecycle and the background listener task."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine

from messaging_client.application.exceptions import TransportError
from messaging_client.application.ports.transport import RealtimeTransport
from messaging_client.application.state import MessagingState

logger = logging.getLogger(__name__)

OnEventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]
OnDisconnectCallback = Callable[[], Awaitable[None]]

MISSING_TOKEN = "Missing authentication token"


class ConnectionManager:
    """Opens and closes the socket and keeps the connection flags current.

    ``connect()`` is idempotent; there is no automatic reconnect, so after an
    error the caller invokes ``connect()`` again.
    """

    def __init__(
        self,
        transport: RealtimeTransport,
        state: MessagingState,
        callback: OnEventCallback,
        *,
        token: str | None = None,
        on_disconnect: OnDisconnectCallback | None = None,
    ) -> None:
        self._transport = transport
        self._state = state
        self._callback = callback
        self._token = token
        self._on_disconnect = on_disconnect
        self._task: asyncio.Task[None] | None = None

    @property
    def connected(self) -> bool:
        return self._state.is_connected

    async def connect(self) -> None:
        state = self._state
        if state.is_connected or state.is_connecting:
            return
        if not self._token:
            state.connection_error = MISSING_TOKEN
            state.notify()
            return

        state.is_connecting = True
        state.connection_error = None
        state.notify()
        try:
            await self._transport.open(self._token)
        except TransportError as exc:
            logger.warning("Socket connect failed: %s", exc.detail)
            state.is_connecting = False
            state.connection_error = exc.detail or "Connection failed"
            state.notify()
            return

        state.is_connecting = False
        state.is_connected = True
        state.notify()
        self._task = asyncio.create_task(self._listen(), name="socket-listener")
        logger.info("Socket connected")

    async def disconnect(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        try:
            await self._transport.close()
        except TransportError as exc:
            logger.debug("Socket close error: %s", exc.detail)
        if self._on_disconnect is not None:
            await self._on_disconnect()
        self._state.is_connected = False
        self._state.is_connecting = False
        self._state.notify()
        logger.info("Socket disconnected")

    async def _listen(self) -> None:
        error: str | None = None
        try:
            async for event_type, data in self._transport.frames():
                try:
                    await self._callback(event_type, data)
                except Exception:
                    logger.exception("Error handling socket event %s", event_type)
        except TransportError as exc:
            logger.warning("Socket closed abnormally: %s", exc.detail)
            error = exc.detail or "Connection lost"
        finally:
            if self._task is asyncio.current_task():
                self._task = None
        self._state.is_connected = False
        if error:
            self._state.connection_error = error
        if self._on_disconnect is not None:
            await self._on_disconnect()
        self._state.notify()
