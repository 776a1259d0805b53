"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import itertools
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator

import jwt
import pytest

from messaging_client.application.context import ClientContext
from messaging_client.application.exceptions import ApiError, TransportError
from messaging_client.application.ports.api import ConversationList, MessagePage
from messaging_client.application.state import MessagingState
from messaging_client.domain.entities.conversation import Conversation
from messaging_client.domain.entities.message import Message
from messaging_client.domain.entities.participant import Participant
from messaging_client.domain.value_objects.delivery import Confirmed, Delivery
from messaging_client.domain.value_objects.enums import (
    ConversationType,
    DeliveryStatus,
    MessageType,
)

SELF_ID = "user-42"
BASE_TIME = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


def make_token(sub: str = SELF_ID) -> str:
    return jwt.encode({"sub": sub}, "test-secret", algorithm="HS256")


def make_participant(user_id: str = "user-7", name: str = "Aroha", online: bool = False) -> Participant:
    return Participant(user_id=user_id, display_name=name, is_online=online)


def make_conversation(
    *,
    conversation_id: str | None = None,
    unread: int = 0,
    participants: tuple[Participant, ...] | None = None,
    updated_at: datetime | None = None,
    title: str | None = None,
) -> Conversation:
    return Conversation(
        id=conversation_id or f"conv-{uuid.uuid4().hex[:8]}",
        type=ConversationType.DIRECT,
        participants=participants if participants is not None else (make_participant(),),
        created_at=BASE_TIME,
        updated_at=updated_at or BASE_TIME,
        title=title,
        unread_count=unread,
    )


def make_message(
    *,
    conversation_id: str = "conv-1",
    message_id: str | None = None,
    sender_id: str = "user-7",
    content: str = "hello",
    created_at: datetime | None = None,
    delivery: Delivery | None = None,
) -> Message:
    return Message(
        id=message_id or f"msg-{uuid.uuid4().hex[:8]}",
        conversation_id=conversation_id,
        sender_id=sender_id,
        sender_name="Aroha",
        content=content,
        type=MessageType.TEXT,
        created_at=created_at or BASE_TIME,
        delivery=delivery or Confirmed(status=DeliveryStatus.DELIVERED),
    )


@dataclass
class FixedClock:
    current: datetime = BASE_TIME

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@dataclass
class FakeApi:
    """In-memory MessagingApi for unit tests."""
    conversations: list[Conversation] = field(default_factory=list)
    messages: dict[str, list[Message]] = field(default_factory=dict)
    has_more: bool = False
    unread: int = 0
    errors: dict[str, ApiError] = field(default_factory=dict)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.errors:
            raise self.errors[name]

    def called(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    async def list_conversations(self) -> ConversationList:
        self._record("list_conversations")
        return ConversationList(conversations=list(self.conversations))

    async def create_conversation(
        self,
        participant_ids: list[str],
        conversation_type: ConversationType,
        title: str | None,
    ) -> str:
        self._record("create_conversation", participant_ids, conversation_type, title)
        conversation = make_conversation(conversation_id=f"conv-new-{next(self._ids)}", title=title)
        self.conversations.insert(0, conversation)
        return conversation.id

    async def list_messages(self, conversation_id: str, *, before: str | None = None) -> MessagePage:
        self._record("list_messages", conversation_id, before)
        return MessagePage(messages=list(self.messages.get(conversation_id, [])), has_more=self.has_more)

    async def send_message(self, conversation_id: str, content: str, message_type: MessageType) -> Message:
        self._record("send_message", conversation_id, content, message_type)
        return make_message(
            conversation_id=conversation_id,
            message_id=f"srv-{next(self._ids)}",
            sender_id=SELF_ID,
            content=content,
            delivery=Confirmed(status=DeliveryStatus.SENT),
        )

    async def mark_read(self, conversation_id: str) -> None:
        self._record("mark_read", conversation_id)

    async def unread_count(self) -> int:
        self._record("unread_count")
        return self.unread


@dataclass
class FakeTransport:
    """In-memory RealtimeTransport; tests push inbound frames by hand."""
    connected: bool = False
    open_error: str | None = None
    send_error: str | None = None
    sent: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    tokens: list[str] = field(default_factory=list)
    _inbox: asyncio.Queue = field(default_factory=asyncio.Queue)

    async def open(self, token: str) -> None:
        self.tokens.append(token)
        if self.open_error:
            raise TransportError(self.open_error)
        self.connected = True

    async def close(self) -> None:
        if self.connected:
            self.connected = False
            self._inbox.put_nowait(None)

    async def send(self, event: str, data: dict[str, Any]) -> None:
        if self.send_error:
            raise TransportError(self.send_error)
        self.sent.append((event, data))

    async def frames(self) -> AsyncIterator[tuple[str, dict[str, Any]]]:
        while True:
            item = await self._inbox.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    def push(self, event: str, data: dict[str, Any]) -> None:
        self._inbox.put_nowait((event, data))

    def drop(self, detail: str = "Connection lost") -> None:
        self.connected = False
        self._inbox.put_nowait(TransportError(detail))

    def events(self, name: str) -> list[dict[str, Any]]:
        return [data for event, data in self.sent if event == name]


async def settle(rounds: int = 5) -> None:
    """Let background tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def ctx(api: FakeApi, transport: FakeTransport, clock: FixedClock) -> ClientContext:
    return ClientContext(
        state=MessagingState(),
        api=api,
        transport=transport,
        user_id=SELF_ID,
        clock=clock,
    )
