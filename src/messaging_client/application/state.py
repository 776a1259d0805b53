"""Explicit application state container shared by every service.

Services mutate the state and then call ``notify()``; views subscribe to it to
re-render.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from messaging_client.domain.entities.conversation import Conversation
from messaging_client.domain.entities.message import Message
from messaging_client.domain.value_objects.enums import ConnectionStatus

logger = logging.getLogger(__name__)

StateListener = Callable[["MessagingState"], None]


@dataclass
class MessagingState:
    conversations: list[Conversation] = field(default_factory=list)
    active_conversation_id: str | None = None
    messages: dict[str, list[Message]] = field(default_factory=dict)
    # conversations whose newest history page has been fetched
    loaded: set[str] = field(default_factory=set)
    # client ids sent over the socket and not yet acknowledged
    awaiting_ack: set[str] = field(default_factory=set)
    total_unread: int = 0
    typing_users: dict[str, list[str]] = field(default_factory=dict)

    is_connected: bool = False
    is_connecting: bool = False
    connection_error: str | None = None
    error: str | None = None

    _listeners: list[StateListener] = field(default_factory=list, repr=False)

    @property
    def connection_status(self) -> ConnectionStatus:
        if self.is_connected:
            return ConnectionStatus.CONNECTED
        if self.is_connecting:
            return ConnectionStatus.CONNECTING
        if self.connection_error:
            return ConnectionStatus.ERROR
        return ConnectionStatus.DISCONNECTED

    @property
    def active_conversation(self) -> Conversation | None:
        if self.active_conversation_id is None:
            return None
        return self.get_conversation(self.active_conversation_id)

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        for conversation in self.conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def messages_for(self, conversation_id: str) -> list[Message]:
        return self.messages.get(conversation_id, [])

    def typing_in(self, conversation_id: str) -> list[str]:
        return self.typing_users.get(conversation_id, [])

    def recompute_unread(self) -> None:
        self.total_unread = sum(c.unread_count for c in self.conversations)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("State listener failed")

    def clear(self) -> None:
        """Drop every cached conversation and message (logout)."""
        self.conversations = []
        self.messages = {}
        self.loaded = set()
        self.awaiting_ack = set()
        self.typing_users = {}
        self.active_conversation_id = None
        self.total_unread = 0
        self.notify()
