"""Socket event names shared with the messaging backend."""
from __future__ import annotations

# client -> server
SEND_MESSAGE = "message:send"
TYPING = "message:typing"
JOIN_CONVERSATION = "conversation:join"
LEAVE_CONVERSATION = "conversation:leave"

# server -> client
NEW_MESSAGE = "message:new"
MESSAGE_SENT = "message:sent"
MESSAGE_DELIVERED = "message:delivered"
MESSAGE_READ = "message:read"
USER_TYPING = "message:typing"
PRESENCE_UPDATE = "presence:update"
ERROR = "error"
