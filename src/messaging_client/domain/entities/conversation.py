from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from messaging_client.domain.entities.message import Message
from messaging_client.domain.entities.participant import Participant
from messaging_client.domain.value_objects.enums import ConversationType


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    type: ConversationType
    participants: tuple[Participant, ...]
    created_at: datetime | None
    updated_at: datetime | None
    title: str | None = None
    last_message: Message | None = None
    unread_count: int = 0
    is_muted: bool = False

    def __post_init__(self) -> None:
        if self.unread_count < 0:
            raise ValueError("unread_count must be non-negative")

    @property
    def display_title(self) -> str:
        if self.title:
            return self.title
        return ", ".join(p.display_name for p in self.participants) or "Conversation"
