"""Per-conversation ordered message lists.

Messages are only ever appended (or prepended for older history pages); the
single in-place change is a delivery transition, which swaps the frozen
Message for an updated copy at the same position.
"""
from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import replace
from datetime import datetime

from messaging_client.application.state import MessagingState
from messaging_client.domain.entities.message import Message
from messaging_client.domain.value_objects.delivery import (
    Confirmed,
    Pending,
    promote,
    transition,
)
from messaging_client.domain.value_objects.enums import DeliveryStatus

logger = logging.getLogger(__name__)


class MessageCache:
    def __init__(self, state: MessagingState) -> None:
        self._state = state

    def has(self, conversation_id: str) -> bool:
        """Whether the newest history page of the conversation was fetched."""
        return conversation_id in self._state.loaded

    def append(self, message: Message) -> bool:
        """Append unless a message with the same id is already cached."""
        messages = self._state.messages.setdefault(message.conversation_id, [])
        if any(m.id == message.id for m in messages):
            return False
        messages.append(message)
        return True

    def replace_page(self, conversation_id: str, page: list[Message]) -> None:
        """Install the newest page.

        Unacknowledged local messages stay last. Before the first fetch, live
        messages that arrived early are kept after the page as well.
        """
        page_ids = {m.id for m in page}
        first_fetch = conversation_id not in self._state.loaded
        kept = [
            m for m in self._state.messages_for(conversation_id)
            if m.id not in page_ids and (first_fetch or m.is_pending or m.is_failed)
        ]
        self._state.messages[conversation_id] = list(page) + kept
        self._state.loaded.add(conversation_id)

    def prepend_page(self, conversation_id: str, page: list[Message]) -> None:
        existing = self._state.messages_for(conversation_id)
        known = {m.id for m in existing}
        older = [m for m in page if m.id not in known]
        self._state.messages[conversation_id] = older + list(existing)

    def remove(self, conversation_id: str, message_id: str) -> Message | None:
        messages = self._state.messages.get(conversation_id, [])
        for index, message in enumerate(messages):
            if message.id == message_id:
                return messages.pop(index)
        return None

    def find_by_client_id(self, client_id: str) -> Message | None:
        for messages in self._state.messages.values():
            for message in messages:
                if message.client_id == client_id:
                    return message
        return None

    def confirm(
        self,
        client_id: str,
        message_id: str,
        created_at: datetime | None = None,
    ) -> Message | None:
        """Move the pending message ``client_id`` to sent under its server id."""
        self._state.awaiting_ack.discard(client_id)
        for messages in self._state.messages.values():
            for index, message in enumerate(messages):
                if message.client_id != client_id or not isinstance(message.delivery, Pending):
                    continue
                if any(m.id == message_id for m in messages if m is not message):
                    # server copy arrived first; drop the optimistic duplicate
                    messages.pop(index)
                    return None
                confirmed = replace(
                    message,
                    id=message_id,
                    created_at=created_at or message.created_at,
                    delivery=transition(message.delivery, DeliveryStatus.SENT),
                )
                messages[index] = confirmed
                return confirmed
        logger.debug("No pending message for client id %s", client_id)
        return None

    def fail(self, client_id: str, reason: str = "") -> Message | None:
        self._state.awaiting_ack.discard(client_id)
        for messages in self._state.messages.values():
            for index, message in enumerate(messages):
                if message.client_id == client_id and isinstance(message.delivery, Pending):
                    failed = replace(
                        message,
                        delivery=transition(message.delivery, DeliveryStatus.FAILED, reason=reason),
                    )
                    messages[index] = failed
                    return failed
        return None

    def fail_unacknowledged(self, reason: str) -> list[Message]:
        """Fail every socket send still waiting for ``message:sent``."""
        failed = []
        for client_id in list(self._state.awaiting_ack):
            message = self.fail(client_id, reason)
            if message is not None:
                failed.append(message)
        return failed

    def promote(
        self,
        message_id: str,
        target: DeliveryStatus,
        at: datetime | None = None,
    ) -> Message | None:
        for messages in self._state.messages.values():
            for index, message in enumerate(messages):
                if message.id != message_id:
                    continue
                delivery = promote(message.delivery, target, at=at)
                if delivery is message.delivery:
                    return None
                messages[index] = replace(message, delivery=delivery)
                return messages[index]
        return None

    def promote_conversation(
        self,
        conversation_id: str,
        target: DeliveryStatus,
        at: datetime | None = None,
        message_ids: Collection[str] = (),
    ) -> int:
        """Promote confirmed messages of a conversation; returns how many changed.

        With ``message_ids`` only those messages are promoted.
        """
        wanted = set(message_ids)
        messages = self._state.messages.get(conversation_id, [])
        changed = 0
        for index, message in enumerate(messages):
            if not isinstance(message.delivery, Confirmed):
                continue
            if wanted and message.id not in wanted:
                continue
            delivery = promote(message.delivery, target, at=at)
            if delivery is not message.delivery:
                messages[index] = replace(message, delivery=delivery)
                changed += 1
        return changed
