from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from messaging_client.application.context import ClientContext
from messaging_client.application.dto import events
from messaging_client.application.exceptions import ApiError, TransportError
from messaging_client.domain.entities.conversation import Conversation
from messaging_client.domain.entities.message import Message
from messaging_client.domain.value_objects.delivery import Confirmed, Pending
from messaging_client.domain.value_objects.enums import DeliveryStatus, MessageType
from messaging_client.domain.value_objects.ids import new_client_id
from messaging_client.services.message_cache import MessageCache

logger = logging.getLogger(__name__)

CONNECTION_LOST = "Connection lost"


async def load_messages(
    ctx: ClientContext,
    conversation_id: str,
    before: str | None = None,
) -> bool:
    """Fetch the newest page, or the page older than ``before``.

    Returns whether the server reports more history.
    """
    try:
        page = await ctx.api.list_messages(conversation_id, before=before)
    except ApiError as exc:
        logger.warning("Failed to load messages for %s: %s", conversation_id, exc.detail)
        ctx.state.error = exc.detail or "Failed to load messages"
        ctx.state.notify()
        return False

    cache = MessageCache(ctx.state)
    if before:
        cache.prepend_page(conversation_id, page.messages)
    else:
        cache.replace_page(conversation_id, page.messages)
    ctx.state.notify()
    return page.has_more


async def send_message(
    ctx: ClientContext,
    conversation_id: str,
    content: str,
    msg_type: MessageType = MessageType.TEXT,
) -> bool:
    """Optimistically append a message and hand it to the backend.

    Over the socket the confirmation arrives later as ``message:sent`` or
    ``message:new``; over REST it is applied before returning. Returns False
    for blank input or when the send failed.
    """
    if not content.strip():
        return False

    client_id = new_client_id()
    pending = Message(
        id=client_id,
        conversation_id=conversation_id,
        sender_id=ctx.self_id,
        sender_name="You",
        content=content,
        type=msg_type,
        created_at=ctx.clock.now(),
        delivery=Pending(),
        client_id=client_id,
    )
    MessageCache(ctx.state).append(pending)
    ctx.state.notify()
    return await _dispatch(ctx, pending)


async def retry_message(ctx: ClientContext, conversation_id: str, client_id: str) -> bool:
    """Re-send a failed message as a fresh pending one at the end of the list."""
    cache = MessageCache(ctx.state)
    failed = cache.find_by_client_id(client_id)
    if failed is None or failed.conversation_id != conversation_id or not failed.is_failed:
        return False
    cache.remove(conversation_id, failed.id)
    return await send_message(ctx, conversation_id, failed.content, failed.type)


async def _dispatch(ctx: ClientContext, pending: Message) -> bool:
    cache = MessageCache(ctx.state)
    client_id = pending.client_id or pending.id
    try:
        if ctx.transport.connected:
            ctx.state.awaiting_ack.add(client_id)
            await ctx.transport.send(
                events.SEND_MESSAGE,
                {
                    "conversationId": pending.conversation_id,
                    "content": pending.content,
                    "messageType": pending.type.value,
                    "clientId": client_id,
                },
            )
            return True
        stored = await ctx.api.send_message(pending.conversation_id, pending.content, pending.type)
    except (ApiError, TransportError) as exc:
        logger.warning("Send failed for %s: %s", client_id, exc.detail)
        cache.fail(client_id, exc.detail)
        ctx.state.notify()
        return False

    confirmed = cache.confirm(client_id, stored.id, stored.created_at)
    if confirmed is not None:
        _touch_conversation(ctx, confirmed)
    ctx.state.notify()
    return True


def fail_unacknowledged(ctx: ClientContext, reason: str = CONNECTION_LOST) -> int:
    """Fail socket sends that lost their connection before ``message:sent``.

    They become retryable with ``retry_message``. Returns how many failed.
    """
    failed = MessageCache(ctx.state).fail_unacknowledged(reason)
    if failed:
        logger.warning("%d unacknowledged message(s) failed: %s", len(failed), reason)
        ctx.state.notify()
    return len(failed)


def handle_new_message(ctx: ClientContext, message: Message, client_id: str | None = None) -> None:
    """Apply a ``message:new`` event."""
    cache = MessageCache(ctx.state)
    conversation_id = message.conversation_id
    if any(m.id == message.id for m in ctx.state.messages_for(conversation_id)):
        return

    if client_id:
        confirmed = cache.confirm(client_id, message.id, message.created_at)
        if confirmed is not None:
            _touch_conversation(ctx, confirmed)
            ctx.state.notify()
            return

    incoming = message
    if not isinstance(incoming.delivery, Confirmed):
        incoming = replace(incoming, delivery=Confirmed(status=DeliveryStatus.DELIVERED))
    cache.append(incoming)

    from_self = ctx.user_id is not None and incoming.sender_id == ctx.user_id
    _touch_conversation(ctx, incoming, bump_unread=not from_self)
    ctx.state.notify()


def handle_message_sent(
    ctx: ClientContext,
    client_id: str,
    message_id: str,
    timestamp: datetime | None = None,
) -> None:
    confirmed = MessageCache(ctx.state).confirm(client_id, message_id, timestamp)
    if confirmed is not None:
        _touch_conversation(ctx, confirmed)
        ctx.state.notify()


def handle_message_delivered(ctx: ClientContext, message_id: str) -> None:
    cache = MessageCache(ctx.state)
    if cache.promote(message_id, DeliveryStatus.DELIVERED, at=ctx.clock.now()) is not None:
        ctx.state.notify()


def handle_message_read(
    ctx: ClientContext,
    conversation_id: str,
    user_id: str,
    message_ids: list[str] | None = None,
) -> None:
    """Apply a read receipt; without ``message_ids`` it covers the whole conversation."""
    if ctx.user_id is not None and user_id == ctx.user_id:
        return
    changed = MessageCache(ctx.state).promote_conversation(
        conversation_id, DeliveryStatus.READ, at=ctx.clock.now(), message_ids=message_ids or (),
    )
    if changed:
        ctx.state.notify()


def handle_send_error(ctx: ClientContext, client_id: str | None, detail: str) -> None:
    """Apply a socket ``error`` event; those tied to a send fail the pending message."""
    if client_id and MessageCache(ctx.state).fail(client_id, detail) is not None:
        ctx.state.notify()
        return
    logger.warning("Server error: %s", detail)
    ctx.state.error = detail or "Unexpected server error"
    ctx.state.notify()


def _touch_conversation(ctx: ClientContext, message: Message, *, bump_unread: bool = False) -> None:
    """Refresh last message and ordering of the message's conversation."""
    state = ctx.state
    updated = []
    for conversation in state.conversations:
        if conversation.id == message.conversation_id:
            unread = conversation.unread_count + 1 if bump_unread else conversation.unread_count
            if state.active_conversation_id == conversation.id:
                unread = 0
            conversation = replace(
                conversation,
                last_message=message,
                unread_count=unread,
                updated_at=message.created_at,
            )
        updated.append(conversation)
    updated.sort(key=_updated_key, reverse=True)
    state.conversations = updated
    state.recompute_unread()


def _updated_key(conversation: Conversation) -> float:
    ts = conversation.updated_at or conversation.created_at
    return ts.timestamp() if ts is not None else 0.0
