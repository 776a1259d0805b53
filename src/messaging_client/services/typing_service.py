"""Typing indicators.

``TypingTracker`` debounces the local user's keystrokes into start/stop
signals. ``RemoteTypingRegistry`` tracks which other participants are typing
and expires entries that stop refreshing.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from messaging_client.application.context import ClientContext
from messaging_client.application.dto import events
from messaging_client.application.exceptions import TransportError

logger = logging.getLogger(__name__)

TypingEmitter = Callable[[str, bool], Awaitable[None]]


class TypingTracker:
    """Per-conversation idle → typing → idle state machine."""

    def __init__(self, emit: TypingEmitter, idle_seconds: float = 2.0) -> None:
        self._emit = emit
        self._idle_seconds = idle_seconds
        self._typing: set[str] = set()
        self._timers: dict[str, asyncio.Task[None]] = {}

    def is_typing(self, conversation_id: str) -> bool:
        return conversation_id in self._typing

    async def keystroke(self, conversation_id: str) -> None:
        if conversation_id not in self._typing:
            self._typing.add(conversation_id)
            await self._emit(conversation_id, True)
        self._cancel_timer(conversation_id)
        self._timers[conversation_id] = asyncio.create_task(
            self._expire(conversation_id), name=f"typing-idle-{conversation_id}",
        )

    async def stop(self, conversation_id: str) -> None:
        self._cancel_timer(conversation_id)
        if conversation_id in self._typing:
            self._typing.discard(conversation_id)
            await self._emit(conversation_id, False)

    async def close(self) -> None:
        for conversation_id in list(self._timers):
            self._cancel_timer(conversation_id)
        self._typing.clear()

    async def _expire(self, conversation_id: str) -> None:
        await asyncio.sleep(self._idle_seconds)
        self._timers.pop(conversation_id, None)
        if conversation_id in self._typing:
            self._typing.discard(conversation_id)
            await self._emit(conversation_id, False)

    def _cancel_timer(self, conversation_id: str) -> None:
        task = self._timers.pop(conversation_id, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()


def socket_emitter(ctx: ClientContext) -> TypingEmitter:
    """Relay local typing signals over the socket; best effort."""

    async def _emit(conversation_id: str, is_typing: bool) -> None:
        if not ctx.transport.connected:
            return
        try:
            await ctx.transport.send(
                events.TYPING,
                {"conversationId": conversation_id, "isTyping": is_typing},
            )
        except TransportError as exc:
            logger.debug("Typing signal dropped: %s", exc.detail)

    return _emit


class RemoteTypingRegistry:
    def __init__(self, ctx: ClientContext, timeout_seconds: float = 3.0) -> None:
        self._ctx = ctx
        self._timeout_seconds = timeout_seconds
        self._timers: dict[tuple[str, str], asyncio.Task[None]] = {}

    def handle_user_typing(self, conversation_id: str, user_id: str) -> None:
        if self._ctx.user_id is not None and user_id == self._ctx.user_id:
            return
        typing = self._ctx.state.typing_users.setdefault(conversation_id, [])
        if user_id not in typing:
            typing.append(user_id)
            self._ctx.state.notify()

        key = (conversation_id, user_id)
        self._cancel(key)
        self._timers[key] = asyncio.create_task(
            self._expire(conversation_id, user_id),
            name=f"remote-typing-{conversation_id}-{user_id}",
        )

    def handle_user_stopped_typing(self, conversation_id: str, user_id: str) -> None:
        self._cancel((conversation_id, user_id))
        typing = self._ctx.state.typing_users.get(conversation_id, [])
        if user_id in typing:
            typing.remove(user_id)
            self._ctx.state.notify()

    def clear(self) -> None:
        for key in list(self._timers):
            self._cancel(key)
        if self._ctx.state.typing_users:
            self._ctx.state.typing_users = {}
            self._ctx.state.notify()

    async def _expire(self, conversation_id: str, user_id: str) -> None:
        await asyncio.sleep(self._timeout_seconds)
        self._timers.pop((conversation_id, user_id), None)
        self.handle_user_stopped_typing(conversation_id, user_id)

    def _cancel(self, key: tuple[str, str]) -> None:
        task = self._timers.pop(key, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()
