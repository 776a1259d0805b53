from __future__ import annotations

from dataclasses import dataclass, field

from messaging_client.application.ports.api import MessagingApi
from messaging_client.application.ports.clock import Clock, SystemClock
from messaging_client.application.ports.transport import RealtimeTransport
from messaging_client.application.state import MessagingState


@dataclass
class ClientContext:
    """Collaborators every service function receives explicitly."""

    state: MessagingState
    api: MessagingApi
    transport: RealtimeTransport
    user_id: str | None = None
    clock: Clock = field(default_factory=SystemClock)

    @property
    def self_id(self) -> str:
        return self.user_id or "self"
