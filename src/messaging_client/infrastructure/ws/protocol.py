"""WebSocket frame envelope and event payload models."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WsFrame(BaseModel):
    """Both directions: ``{"type": "message:new", "data": {...}}``."""

    type: str
    data: dict[str, Any] = {}


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class NewMessagePayload(_Payload):
    id: str
    conversation_id: str
    sender_id: str
    sender_name: str = ""
    content: str = ""
    type: str = Field(default="text", validation_alias=AliasChoices("type", "messageType"))
    created_at: datetime
    client_id: str | None = None


class MessageSentPayload(_Payload):
    client_id: str
    message_id: str
    timestamp: datetime | None = None


class MessageDeliveredPayload(_Payload):
    message_id: str


class MessageReadPayload(_Payload):
    conversation_id: str
    user_id: str
    message_ids: list[str] = []


class TypingPayload(_Payload):
    conversation_id: str
    user_id: str
    is_typing: bool = True


class PresencePayload(_Payload):
    user_id: str
    status: str = "offline"

    @property
    def is_online(self) -> bool:
        return self.status == "online"


class ErrorPayload(_Payload):
    message: str = ""
    client_id: str | None = None
