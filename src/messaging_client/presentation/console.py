"""Line-oriented terminal view over MessagingClient."""
from __future__ import annotations

import logging
from typing import Callable

from messaging_client.application.state import MessagingState
from messaging_client.client import MessagingClient
from messaging_client.domain.entities.message import Message
from messaging_client.domain.value_objects.enums import ConnectionStatus
from messaging_client.presentation import formatting

logger = logging.getLogger(__name__)

HELP = (
    "/list  show conversations\n"
    "/open ID  open a conversation\n"
    "/close  leave the current conversation\n"
    "/more  load older messages\n"
    "/retry CLIENT_ID  re-send a failed message\n"
    "/connect  reconnect the socket\n"
    "/quit  exit\n"
    "anything else is sent to the open conversation"
)


class ConsoleView:
    def __init__(self, client: MessagingClient, write: Callable[[str], None] = print) -> None:
        self._client = client
        self._write = write
        self._seen: dict[str, int] = {}
        self._busy = False

    @property
    def state(self) -> MessagingState:
        return self._client.state

    def attach(self) -> Callable[[], None]:
        return self.state.subscribe(self._on_state_change)

    def render(self) -> str:
        lines = [self.render_banner(), self.render_conversations()]
        if self.state.active_conversation_id is not None:
            lines.append(self.render_active())
        return "\n".join(line for line in lines if line)

    def render_banner(self) -> str:
        parts = []
        if self.state.connection_status == ConnectionStatus.ERROR:
            parts.append(f"[connection error] {self.state.connection_error}")
        elif self.state.connection_status == ConnectionStatus.CONNECTING:
            parts.append("[connecting]")
        if self.state.error:
            parts.append(f"[error] {self.state.error}")
        return "\n".join(parts)

    def render_conversations(self) -> str:
        if not self.state.conversations:
            return "No conversations"
        rows = []
        for conversation in self.state.conversations:
            active = ">" if conversation.id == self.state.active_conversation_id else " "
            unread = f" ({conversation.unread_count})" if conversation.unread_count else ""
            rows.append(
                f"{active} {formatting.online_marker(conversation)} {conversation.id}  "
                f"{formatting.conversation_title(conversation)}{unread}: "
                f"{formatting.preview(conversation)}"
            )
        return "\n".join(rows)

    def render_active(self) -> str:
        conversation_id = self.state.active_conversation_id
        if conversation_id is None:
            return ""
        rows = []
        last_day = None
        for message in self.state.messages_for(conversation_id):
            day = formatting.format_day(message.created_at, now=self._client.ctx.clock.now())
            if day != last_day:
                rows.append(f"--- {day} ---")
                last_day = day
            rows.append(self.render_message(message))
        if not rows:
            rows.append("No messages yet. Say hello!")
        typing = formatting.typing_label(self.state.typing_in(conversation_id))
        if typing:
            rows.append(typing)
        return "\n".join(rows)

    def render_message(self, message: Message) -> str:
        sender = message.sender_name or message.sender_id
        line = f"[{formatting.format_time(message.created_at)}] {sender}: {message.content}"
        if message.sender_id == self._client.ctx.self_id:
            line = f"{line}  {formatting.status_marker(message)}"
            if message.is_failed:
                line = f"{line} (/retry {message.client_id})"
        return line

    async def handle_line(self, line: str) -> bool:
        """Run one input line; returns False when the user quits."""
        self._busy = True
        try:
            return await self._run(line)
        finally:
            self._busy = False
            self._sync_seen()

    async def _run(self, line: str) -> bool:
        text = line.strip()
        if not text:
            return True
        if not text.startswith("/"):
            await self._send(line.rstrip("\r\n"))
            return True

        command, _, arg = text.partition(" ")
        arg = arg.strip()
        if command == "/quit":
            return False
        if command == "/help":
            self._write(HELP)
        elif command == "/list":
            await self._client.load_conversations()
            self._write(self.render_conversations())
        elif command == "/open" and arg:
            await self._client.set_active_conversation(arg)
            self._write(self.render())
        elif command == "/close":
            await self._client.set_active_conversation(None)
        elif command == "/more":
            await self._load_older()
        elif command == "/retry" and arg:
            conversation_id = self.state.active_conversation_id
            if conversation_id is None or not await self._client.retry_message(conversation_id, arg):
                self._write("Nothing to retry")
        elif command == "/connect":
            await self._client.connect()
            self._write(self.render_banner() or "Connected")
        else:
            self._write(HELP)
        return True

    async def _send(self, text: str) -> None:
        conversation_id = self.state.active_conversation_id
        if conversation_id is None:
            self._write("Open a conversation first (/open ID)")
            return
        self._client.clear_error()
        await self._client.send_message(conversation_id, text)
        messages = self.state.messages_for(conversation_id)
        if messages:
            self._write(self.render_message(messages[-1]))

    async def _load_older(self) -> None:
        conversation_id = self.state.active_conversation_id
        if conversation_id is None:
            return
        messages = self.state.messages_for(conversation_id)
        before = messages[0].created_at.isoformat() if messages else None
        await self._client.load_messages(conversation_id, before)
        self._write(self.render_active())

    def _on_state_change(self, state: MessagingState) -> None:
        if self._busy:
            return
        conversation_id = state.active_conversation_id
        if conversation_id is None:
            return
        messages = state.messages_for(conversation_id)
        seen = self._seen.get(conversation_id, len(messages))
        for message in messages[seen:]:
            self._write(self.render_message(message))
        self._seen[conversation_id] = len(messages)

    def _sync_seen(self) -> None:
        conversation_id = self.state.active_conversation_id
        if conversation_id is not None:
            self._seen[conversation_id] = len(self.state.messages_for(conversation_id))
