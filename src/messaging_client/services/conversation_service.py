from __future__ import annotations

import logging
from dataclasses import replace

from messaging_client.application.context import ClientContext
from messaging_client.application.dto import events
from messaging_client.application.exceptions import ApiError, TransportError
from messaging_client.domain.value_objects.enums import ConversationType
from messaging_client.services import message_service
from messaging_client.services.message_cache import MessageCache

logger = logging.getLogger(__name__)


async def load_conversations(ctx: ClientContext) -> bool:
    """Replace the conversation cache with the server's list."""
    try:
        result = await ctx.api.list_conversations()
    except ApiError as exc:
        logger.warning("Failed to load conversations: %s", exc.detail)
        ctx.state.error = exc.detail or "Failed to load conversations"
        ctx.state.notify()
        return False

    active_id = ctx.state.active_conversation_id
    ctx.state.conversations = [
        replace(c, unread_count=0) if c.id == active_id else c
        for c in result.conversations
    ]
    ctx.state.recompute_unread()
    ctx.state.notify()
    return True


async def set_active_conversation(ctx: ClientContext, conversation_id: str | None) -> None:
    """Focus a conversation: join its room, lazily load messages, mark it read."""
    previous = ctx.state.active_conversation_id
    ctx.state.active_conversation_id = conversation_id
    ctx.state.notify()

    if previous and previous != conversation_id:
        await _emit_room(ctx, events.LEAVE_CONVERSATION, previous)
    if conversation_id is None:
        return
    if previous != conversation_id:
        await _emit_room(ctx, events.JOIN_CONVERSATION, conversation_id)

    if not MessageCache(ctx.state).has(conversation_id):
        await message_service.load_messages(ctx, conversation_id)
    await mark_as_read(ctx, conversation_id)


async def mark_as_read(ctx: ClientContext, conversation_id: str) -> None:
    _reset_unread(ctx, conversation_id)
    ctx.state.notify()
    try:
        await ctx.api.mark_read(conversation_id)
    except ApiError as exc:
        logger.warning("Failed to mark %s as read: %s", conversation_id, exc.detail)
        ctx.state.error = exc.detail or "Failed to mark as read"
        ctx.state.notify()


async def create_conversation(
    ctx: ClientContext,
    participant_ids: list[str],
    conversation_type: ConversationType = ConversationType.DIRECT,
    title: str | None = None,
) -> str | None:
    try:
        conversation_id = await ctx.api.create_conversation(participant_ids, conversation_type, title)
    except ApiError as exc:
        logger.warning("Failed to create conversation: %s", exc.detail)
        ctx.state.error = exc.detail or "Failed to create conversation"
        ctx.state.notify()
        return None
    await load_conversations(ctx)
    return conversation_id


async def refresh_unread_count(ctx: ClientContext) -> int:
    """Take the server's total unread count as ``total_unread``.

    The server total wins over the local sum because it also counts
    conversations missing from the cached list. The next local change to a
    conversation recomputes the total from the cache; call
    ``load_conversations`` to bring both in line.
    """
    try:
        ctx.state.total_unread = max(0, await ctx.api.unread_count())
    except ApiError as exc:
        logger.warning("Failed to refresh unread count: %s", exc.detail)
        return ctx.state.total_unread
    ctx.state.notify()
    return ctx.state.total_unread


def handle_presence_change(ctx: ClientContext, user_id: str, is_online: bool) -> None:
    now = ctx.clock.now()
    changed = False
    updated = []
    for conversation in ctx.state.conversations:
        if any(p.user_id == user_id for p in conversation.participants):
            participants = tuple(
                replace(p, is_online=is_online, last_seen=None if is_online else now)
                if p.user_id == user_id else p
                for p in conversation.participants
            )
            conversation = replace(conversation, participants=participants)
            changed = True
        updated.append(conversation)
    if changed:
        ctx.state.conversations = updated
        ctx.state.notify()


def clear_error(ctx: ClientContext) -> None:
    ctx.state.error = None
    ctx.state.notify()


def _reset_unread(ctx: ClientContext, conversation_id: str) -> None:
    ctx.state.conversations = [
        replace(c, unread_count=0) if c.id == conversation_id else c
        for c in ctx.state.conversations
    ]
    ctx.state.recompute_unread()


async def _emit_room(ctx: ClientContext, event: str, conversation_id: str) -> None:
    if not ctx.transport.connected:
        return
    try:
        await ctx.transport.send(event, {"conversationId": conversation_id})
    except TransportError as exc:
        logger.warning("Failed to send %s for %s: %s", event, conversation_id, exc.detail)
