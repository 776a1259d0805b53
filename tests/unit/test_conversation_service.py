from __future__ import annotations

import pytest

from messaging_client.application.dto import events
from messaging_client.application.exceptions import ApiError
from messaging_client.domain.value_objects.enums import ConversationType
from messaging_client.services import conversation_service, message_service
from tests.conftest import BASE_TIME, make_conversation, make_message, make_participant


@pytest.mark.asyncio
async def test_load_conversations_replaces_cache(ctx, api):
    ctx.state.conversations = [make_conversation(conversation_id="stale")]
    api.conversations = [
        make_conversation(conversation_id="conv-1", unread=2),
        make_conversation(conversation_id="conv-2", unread=3),
    ]

    ok = await conversation_service.load_conversations(ctx)

    assert ok is True
    assert [c.id for c in ctx.state.conversations] == ["conv-1", "conv-2"]
    assert ctx.state.total_unread == 5


@pytest.mark.asyncio
async def test_load_conversations_failure_keeps_cache(ctx, api):
    ctx.state.conversations = [make_conversation(conversation_id="conv-1")]
    api.errors["list_conversations"] = ApiError("Failed to fetch conversations", 500)

    ok = await conversation_service.load_conversations(ctx)

    assert ok is False
    assert [c.id for c in ctx.state.conversations] == ["conv-1"]
    assert ctx.state.error == "Failed to fetch conversations"


@pytest.mark.asyncio
async def test_opening_conversation_loads_messages_and_marks_read(ctx, api):
    ctx.state.conversations = [make_conversation(conversation_id="conv-1", unread=4)]
    ctx.state.recompute_unread()
    api.messages["conv-1"] = [make_message(conversation_id="conv-1", message_id="m1")]

    await conversation_service.set_active_conversation(ctx, "conv-1")

    assert ctx.state.active_conversation_id == "conv-1"
    assert [m.id for m in ctx.state.messages_for("conv-1")] == ["m1"]
    assert ctx.state.conversations[0].unread_count == 0
    assert ctx.state.total_unread == 0
    assert api.called("mark_read") == [("conv-1",)]


@pytest.mark.asyncio
async def test_cached_conversation_is_not_refetched(ctx, api):
    ctx.state.conversations = [make_conversation(conversation_id="conv-1")]
    ctx.state.messages["conv-1"] = [make_message(conversation_id="conv-1")]
    ctx.state.loaded.add("conv-1")

    await conversation_service.set_active_conversation(ctx, "conv-1")

    assert api.called("list_messages") == []


@pytest.mark.asyncio
async def test_live_messages_before_first_open_do_not_skip_history(ctx, api):
    ctx.state.conversations = [make_conversation(conversation_id="conv-1")]
    api.messages["conv-1"] = [
        make_message(conversation_id="conv-1", message_id="h1"),
        make_message(conversation_id="conv-1", message_id="h2"),
    ]
    message_service.handle_new_message(ctx, make_message(conversation_id="conv-1", message_id="live"))

    await conversation_service.set_active_conversation(ctx, "conv-1")

    assert api.called("list_messages") == [("conv-1", None)]
    assert [m.id for m in ctx.state.messages_for("conv-1")] == ["h1", "h2", "live"]


@pytest.mark.asyncio
async def test_history_page_that_includes_live_message_is_not_duplicated(ctx, api):
    ctx.state.conversations = [make_conversation(conversation_id="conv-1")]
    live = make_message(conversation_id="conv-1", message_id="h2")
    api.messages["conv-1"] = [make_message(conversation_id="conv-1", message_id="h1"), live]
    message_service.handle_new_message(ctx, live)

    await conversation_service.set_active_conversation(ctx, "conv-1")

    assert [m.id for m in ctx.state.messages_for("conv-1")] == ["h1", "h2"]


@pytest.mark.asyncio
async def test_switching_conversations_joins_and_leaves_rooms(ctx, transport):
    transport.connected = True
    ctx.state.conversations = [
        make_conversation(conversation_id="conv-1"),
        make_conversation(conversation_id="conv-2"),
    ]

    await conversation_service.set_active_conversation(ctx, "conv-1")
    await conversation_service.set_active_conversation(ctx, "conv-2")
    await conversation_service.set_active_conversation(ctx, None)

    assert transport.events(events.JOIN_CONVERSATION) == [
        {"conversationId": "conv-1"},
        {"conversationId": "conv-2"},
    ]
    assert transport.events(events.LEAVE_CONVERSATION) == [
        {"conversationId": "conv-1"},
        {"conversationId": "conv-2"},
    ]
    assert ctx.state.active_conversation_id is None


@pytest.mark.asyncio
async def test_mark_as_read_resets_unread_even_when_request_fails(ctx, api):
    ctx.state.conversations = [
        make_conversation(conversation_id="conv-1", unread=2),
        make_conversation(conversation_id="conv-2", unread=1),
    ]
    api.errors["mark_read"] = ApiError("Failed to mark as read", 500)

    await conversation_service.mark_as_read(ctx, "conv-1")

    assert [c.unread_count for c in ctx.state.conversations] == [0, 1]
    assert ctx.state.total_unread == 1
    assert ctx.state.error == "Failed to mark as read"


@pytest.mark.asyncio
async def test_create_conversation_reloads_and_returns_id(ctx, api):
    conversation_id = await conversation_service.create_conversation(
        ctx, ["user-7"], ConversationType.DIRECT, None,
    )

    assert conversation_id is not None
    assert conversation_id in [c.id for c in ctx.state.conversations]
    assert api.called("list_conversations")


@pytest.mark.asyncio
async def test_create_conversation_failure_returns_none(ctx, api):
    api.errors["create_conversation"] = ApiError("participantIds is required", 400)

    assert await conversation_service.create_conversation(ctx, []) is None
    assert ctx.state.error == "participantIds is required"


@pytest.mark.asyncio
async def test_refresh_unread_count(ctx, api):
    api.unread = 7

    assert await conversation_service.refresh_unread_count(ctx) == 7
    assert ctx.state.total_unread == 7


@pytest.mark.asyncio
async def test_server_unread_total_wins_over_local_sum(ctx, api):
    ctx.state.conversations = [make_conversation(conversation_id="conv-1", unread=1)]
    ctx.state.recompute_unread()
    api.unread = 4

    await conversation_service.refresh_unread_count(ctx)
    assert ctx.state.total_unread == 4

    api.conversations = list(ctx.state.conversations)
    await conversation_service.load_conversations(ctx)
    assert ctx.state.total_unread == 1


def test_presence_change_updates_participant_everywhere(ctx, clock):
    aroha = make_participant("user-7", "Aroha", online=True)
    ctx.state.conversations = [
        make_conversation(conversation_id="conv-1", participants=(aroha,)),
        make_conversation(conversation_id="conv-2", participants=(aroha, make_participant("user-9", "Tama"))),
    ]

    conversation_service.handle_presence_change(ctx, "user-7", False)

    for conversation in ctx.state.conversations:
        participant = next(p for p in conversation.participants if p.user_id == "user-7")
        assert participant.is_online is False
        assert participant.last_seen == BASE_TIME

    conversation_service.handle_presence_change(ctx, "user-7", True)
    participant = ctx.state.conversations[0].participants[0]
    assert participant.is_online is True
    assert participant.last_seen is None


def test_unread_counts_never_negative():
    with pytest.raises(ValueError):
        make_conversation(unread=-1)


def test_clear_error(ctx):
    ctx.state.error = "boom"

    conversation_service.clear_error(ctx)

    assert ctx.state.error is None
