from __future__ import annotations

import uuid
from typing import NewType

ConversationId = NewType("ConversationId", str)
MessageId = NewType("MessageId", str)
UserId = NewType("UserId", str)

TEMP_ID_PREFIX = "temp-"


def new_client_id() -> str:
    """Temporary id for a message that the server has not acknowledged yet."""
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"
