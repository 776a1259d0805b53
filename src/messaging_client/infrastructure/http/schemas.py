"""REST payload models (camelCase on the wire)."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope every REST call is normalised into."""

    ok: bool
    status: int
    data: T | None = None
    error: str | None = None


class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ParticipantSchema(_Schema):
    user_id: str
    name: str = Field(default="Unknown", validation_alias=AliasChoices("name", "userName"))
    avatar: str | None = Field(default=None, validation_alias=AliasChoices("avatar", "userAvatar"))
    role: str | None = None
    is_online: bool = False
    last_seen: datetime | None = None


class MessageSchema(_Schema):
    id: str
    conversation_id: str | None = None
    sender_id: str
    sender_name: str = ""
    content: str | None = ""
    type: str = Field(default="text", validation_alias=AliasChoices("type", "messageType"))
    created_at: datetime
    status: str | None = None


class ConversationSchema(_Schema):
    id: str
    type: str = "direct"
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "title"))
    participants: list[ParticipantSchema] = []
    last_message: MessageSchema | None = None
    unread_count: int = 0
    is_muted: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ConversationListResponse(_Schema):
    conversations: list[ConversationSchema] = []
    total_unread: int | None = None


class ConversationRef(_Schema):
    id: str


class CreateConversationResponse(_Schema):
    conversation: ConversationRef
    is_existing: bool = False


class MessagesResponse(_Schema):
    messages: list[MessageSchema] = []
    has_more: bool = False


class SendMessageResponse(_Schema):
    message: MessageSchema


class UnreadCountResponse(_Schema):
    unread_count: int = 0


class CreateConversationRequest(_Schema):
    participant_ids: list[str]
    type: str
    title: str | None = None


class SendMessageRequest(_Schema):
    content: str
    message_type: str = "text"