from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Participant:
    user_id: str
    display_name: str
    avatar_url: str | None = None
    role: str | None = None
    is_online: bool = False
    last_seen: datetime | None = None
