from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from messaging_client.domain.value_objects.delivery import Delivery, Failed, Pending
from messaging_client.domain.value_objects.enums import DeliveryStatus, MessageType


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    conversation_id: str
    sender_id: str
    sender_name: str
    content: str
    type: MessageType
    created_at: datetime
    delivery: Delivery
    client_id: str | None = None

    @property
    def status(self) -> DeliveryStatus:
        return self.delivery.status

    @property
    def is_pending(self) -> bool:
        return isinstance(self.delivery, Pending)

    @property
    def is_failed(self) -> bool:
        return isinstance(self.delivery, Failed)
