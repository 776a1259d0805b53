from __future__ import annotations

from typing import Any, AsyncIterator, Protocol


class RealtimeTransport(Protocol):
    """Persistent socket carrying ``(event, data)`` frames."""

    @property
    def connected(self) -> bool: ...

    async def open(self, token: str) -> None: ...

    async def close(self) -> None: ...

    async def send(self, event: str, data: dict[str, Any]) -> None: ...

    def frames(self) -> AsyncIterator[tuple[str, dict[str, Any]]]:
        """Yield inbound frames until the socket closes.

        Ends quietly on a normal close, raises TransportError otherwise.
        """
        ...
