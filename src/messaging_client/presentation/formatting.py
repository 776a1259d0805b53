"""Pure helpers turning state into display strings."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from messaging_client.domain.entities.conversation import Conversation
from messaging_client.domain.entities.message import Message
from messaging_client.domain.value_objects.enums import DeliveryStatus

PREVIEW_LENGTH = 40

_STATUS_MARKERS = {
    DeliveryStatus.SENDING: "…",
    DeliveryStatus.SENT: "✓",
    DeliveryStatus.DELIVERED: "✓✓",
    DeliveryStatus.READ: "✓✓ read",
    DeliveryStatus.FAILED: "! failed",
}


def format_time(ts: datetime) -> str:
    return ts.astimezone().strftime("%H:%M")


def format_day(ts: datetime, now: datetime | None = None) -> str:
    local = ts.astimezone()
    today = (now or datetime.now(timezone.utc)).astimezone().date()
    if local.date() == today:
        return "Today"
    if local.date() == today - timedelta(days=1):
        return "Yesterday"
    return local.strftime("%A, %b %d")


def typing_label(user_ids: list[str]) -> str:
    if not user_ids:
        return ""
    if len(user_ids) == 1:
        return "typing..."
    return "multiple people typing..."


def status_marker(message: Message) -> str:
    return _STATUS_MARKERS[message.status]


def conversation_title(conversation: Conversation) -> str:
    return conversation.display_title


def preview(conversation: Conversation, length: int = PREVIEW_LENGTH) -> str:
    message = conversation.last_message
    if message is None:
        return "No messages yet"
    text = " ".join(message.content.split())
    if len(text) <= length:
        return text
    return text[: length - 3].rstrip() + "..."


def online_marker(conversation: Conversation) -> str:
    return "●" if any(p.is_online for p in conversation.participants) else "○"
