from __future__ import annotations

import logging
from typing import Any, AsyncIterator
from urllib.parse import urlencode

import pydantic
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from messaging_client.application.exceptions import TransportError
from messaging_client.infrastructure.ws.protocol import WsFrame

logger = logging.getLogger(__name__)


class WebsocketTransport:
    """Implements application.ports.transport.RealtimeTransport."""

    def __init__(
        self,
        url: str,
        *,
        ping_interval: float | None = 20.0,
        open_timeout: float | None = 10.0,
    ) -> None:
        self._url = url
        self._ping_interval = ping_interval
        self._open_timeout = open_timeout
        self._ws: ClientConnection | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    async def open(self, token: str) -> None:
        separator = "&" if "?" in self._url else "?"
        uri = f"{self._url}{separator}{urlencode({'token': token})}"
        try:
            self._ws = await connect(
                uri,
                ping_interval=self._ping_interval,
                open_timeout=self._open_timeout,
            )
        except (OSError, TimeoutError, WebSocketException) as exc:
            raise TransportError(f"Connection error: {exc}") from exc
        logger.debug("WS opened: %s", self._url)

    async def close(self) -> None:
        ws, self._ws = self._ws, None
        if ws is None:
            return
        try:
            await ws.close()
        except WebSocketException as exc:
            raise TransportError(str(exc)) from exc

    async def send(self, event: str, data: dict[str, Any]) -> None:
        ws = self._require()
        raw = WsFrame(type=event, data=data).model_dump_json()
        try:
            await ws.send(raw)
        except ConnectionClosed as exc:
            raise TransportError(f"Connection closed: {exc}") from exc

    async def frames(self) -> AsyncIterator[tuple[str, dict[str, Any]]]:
        ws = self._require()
        try:
            async for raw in ws:
                try:
                    frame = WsFrame.model_validate_json(raw)
                except pydantic.ValidationError:
                    logger.warning("Dropping malformed frame")
                    continue
                yield frame.type, frame.data
        except ConnectionClosed as exc:
            raise TransportError(f"Connection lost: {exc}") from exc

    def _require(self) -> ClientConnection:
        if self._ws is None:
            raise TransportError("Not connected")
        return self._ws
