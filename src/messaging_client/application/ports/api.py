from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from messaging_client.domain.entities.conversation import Conversation
from messaging_client.domain.entities.message import Message
from messaging_client.domain.value_objects.enums import ConversationType, MessageType


@dataclass(frozen=True, slots=True)
class ConversationList:
    conversations: list[Conversation]
    total_unread: int | None = None


@dataclass(frozen=True, slots=True)
class MessagePage:
    messages: list[Message]
    has_more: bool = False


class MessagingApi(Protocol):
    async def list_conversations(self) -> ConversationList: ...

    async def create_conversation(
        self,
        participant_ids: list[str],
        conversation_type: ConversationType,
        title: str | None,
    ) -> str:
        """Return the id of the new (or already existing direct) conversation."""
        ...

    async def list_messages(
        self,
        conversation_id: str,
        *,
        before: str | None = None,
    ) -> MessagePage: ...

    async def send_message(
        self,
        conversation_id: str,
        content: str,
        message_type: MessageType,
    ) -> Message: ...

    async def mark_read(self, conversation_id: str) -> None: ...

    async def unread_count(self) -> int: ...
