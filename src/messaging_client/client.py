"""High-level messaging client wiring state, services and the socket."""
from __future__ import annotations

import logging
from typing import Any, Callable

import pydantic

from messaging_client.application.context import ClientContext
from messaging_client.application.dto import events
from messaging_client.application.ports.api import MessagingApi
from messaging_client.application.ports.clock import Clock, SystemClock
from messaging_client.application.ports.transport import RealtimeTransport
from messaging_client.application.state import MessagingState
from messaging_client.config import Settings, settings as default_settings
from messaging_client.domain.value_objects.enums import ConversationType, MessageType
from messaging_client.infrastructure.auth.token import subject_from_token
from messaging_client.infrastructure.http.api_client import HttpMessagingApi
from messaging_client.infrastructure.mappers import message as message_mapper
from messaging_client.infrastructure.ws.manager import ConnectionManager
from messaging_client.infrastructure.ws.protocol import (
    ErrorPayload,
    MessageDeliveredPayload,
    MessageReadPayload,
    MessageSentPayload,
    NewMessagePayload,
    PresencePayload,
    TypingPayload,
)
from messaging_client.infrastructure.ws.transport import WebsocketTransport
from messaging_client.services import conversation_service, message_service
from messaging_client.services.typing_service import (
    RemoteTypingRegistry,
    TypingTracker,
    socket_emitter,
)

logger = logging.getLogger(__name__)


class MessagingClient:
    def __init__(
        self,
        api: MessagingApi,
        transport: RealtimeTransport,
        *,
        token: str | None = None,
        state: MessagingState | None = None,
        clock: Clock | None = None,
        typing_idle_seconds: float = 2.0,
        remote_typing_timeout_seconds: float = 3.0,
    ) -> None:
        self.state = state or MessagingState()
        self.ctx = ClientContext(
            state=self.state,
            api=api,
            transport=transport,
            user_id=subject_from_token(token),
            clock=clock or SystemClock(),
        )
        self.typing = TypingTracker(socket_emitter(self.ctx), idle_seconds=typing_idle_seconds)
        self.remote_typing = RemoteTypingRegistry(
            self.ctx, timeout_seconds=remote_typing_timeout_seconds,
        )
        self.connection = ConnectionManager(
            transport,
            self.state,
            self.dispatch,
            token=token,
            on_disconnect=self._on_disconnect,
        )
        self._handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            events.NEW_MESSAGE: self._on_new_message,
            events.MESSAGE_SENT: self._on_message_sent,
            events.MESSAGE_DELIVERED: self._on_message_delivered,
            events.MESSAGE_READ: self._on_message_read,
            events.USER_TYPING: self._on_typing,
            events.PRESENCE_UPDATE: self._on_presence,
            events.ERROR: self._on_error,
        }

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> MessagingClient:
        config = config or default_settings
        api = HttpMessagingApi(
            config.API_BASE_URL,
            config.ACCESS_TOKEN,
            timeout_seconds=config.HTTP_TIMEOUT_SECONDS,
            page_size=config.MESSAGE_PAGE_SIZE,
        )
        transport = WebsocketTransport(
            config.WS_URL,
            ping_interval=config.WS_PING_INTERVAL_SECONDS,
            open_timeout=config.WS_OPEN_TIMEOUT_SECONDS,
        )
        return cls(
            api,
            transport,
            token=config.ACCESS_TOKEN,
            typing_idle_seconds=config.TYPING_IDLE_SECONDS,
            remote_typing_timeout_seconds=config.REMOTE_TYPING_TIMEOUT_SECONDS,
        )

    async def __aenter__(self) -> MessagingClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.disconnect()
        aclose = getattr(self.ctx.api, "aclose", None)
        if aclose is not None:
            await aclose()

    # connection

    async def connect(self) -> None:
        await self.connection.connect()

    async def disconnect(self) -> None:
        await self.connection.disconnect()

    # conversations

    async def load_conversations(self) -> bool:
        return await conversation_service.load_conversations(self.ctx)

    async def set_active_conversation(self, conversation_id: str | None) -> None:
        previous = self.state.active_conversation_id
        if previous and previous != conversation_id:
            await self.typing.stop(previous)
        await conversation_service.set_active_conversation(self.ctx, conversation_id)

    async def create_conversation(
        self,
        participant_ids: list[str],
        conversation_type: ConversationType = ConversationType.DIRECT,
        title: str | None = None,
    ) -> str | None:
        return await conversation_service.create_conversation(
            self.ctx, participant_ids, conversation_type, title,
        )

    async def mark_as_read(self, conversation_id: str) -> None:
        await conversation_service.mark_as_read(self.ctx, conversation_id)

    async def refresh_unread_count(self) -> int:
        return await conversation_service.refresh_unread_count(self.ctx)

    def clear_error(self) -> None:
        conversation_service.clear_error(self.ctx)

    # messages

    async def load_messages(self, conversation_id: str, before: str | None = None) -> bool:
        return await message_service.load_messages(self.ctx, conversation_id, before)

    async def send_message(
        self,
        conversation_id: str,
        content: str,
        msg_type: MessageType = MessageType.TEXT,
    ) -> bool:
        if not content.strip():
            return False
        await self.typing.stop(conversation_id)
        return await message_service.send_message(self.ctx, conversation_id, content, msg_type)

    async def retry_message(self, conversation_id: str, client_id: str) -> bool:
        return await message_service.retry_message(self.ctx, conversation_id, client_id)

    async def keystroke(self, conversation_id: str) -> None:
        await self.typing.keystroke(conversation_id)

    def logout(self) -> None:
        """Evict every cached conversation and message."""
        self.remote_typing.clear()
        self.state.clear()

    # socket events

    async def dispatch(self, event_type: str, data: dict[str, Any]) -> None:
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.debug("Ignoring socket event %s", event_type)
            return
        try:
            handler(data)
        except pydantic.ValidationError:
            logger.warning("Malformed %s payload: %s", event_type, data)

    def _on_new_message(self, data: dict[str, Any]) -> None:
        payload = NewMessagePayload.model_validate(data)
        message_service.handle_new_message(
            self.ctx, message_mapper.payload_to_entity(payload), payload.client_id,
        )

    def _on_message_sent(self, data: dict[str, Any]) -> None:
        payload = MessageSentPayload.model_validate(data)
        message_service.handle_message_sent(
            self.ctx, payload.client_id, payload.message_id, payload.timestamp,
        )

    def _on_message_delivered(self, data: dict[str, Any]) -> None:
        payload = MessageDeliveredPayload.model_validate(data)
        message_service.handle_message_delivered(self.ctx, payload.message_id)

    def _on_message_read(self, data: dict[str, Any]) -> None:
        payload = MessageReadPayload.model_validate(data)
        message_service.handle_message_read(
            self.ctx, payload.conversation_id, payload.user_id, payload.message_ids,
        )

    def _on_typing(self, data: dict[str, Any]) -> None:
        payload = TypingPayload.model_validate(data)
        if payload.is_typing:
            self.remote_typing.handle_user_typing(payload.conversation_id, payload.user_id)
        else:
            self.remote_typing.handle_user_stopped_typing(payload.conversation_id, payload.user_id)

    def _on_presence(self, data: dict[str, Any]) -> None:
        payload = PresencePayload.model_validate(data)
        conversation_service.handle_presence_change(self.ctx, payload.user_id, payload.is_online)

    def _on_error(self, data: dict[str, Any]) -> None:
        payload = ErrorPayload.model_validate(data)
        message_service.handle_send_error(self.ctx, payload.client_id, payload.message)

    async def _on_disconnect(self) -> None:
        await self.typing.close()
        self.remote_typing.clear()
        message_service.fail_unacknowledged(self.ctx)
