from __future__ import annotations

from messaging_client.domain.entities.message import Message
from messaging_client.domain.value_objects.delivery import Confirmed, Delivery
from messaging_client.domain.value_objects.enums import DeliveryStatus, MessageType
from messaging_client.infrastructure.http.schemas import MessageSchema
from messaging_client.infrastructure.ws.protocol import NewMessagePayload


def message_type(raw: str | None) -> MessageType:
    try:
        return MessageType(raw or MessageType.TEXT)
    except ValueError:
        return MessageType.FILE


def _delivery(raw: str | None, default: DeliveryStatus) -> Delivery:
    try:
        status = DeliveryStatus(raw) if raw else default
    except ValueError:
        status = default
    if status in (DeliveryStatus.SENDING, DeliveryStatus.FAILED):
        status = default
    return Confirmed(status=status)


def schema_to_entity(
    schema: MessageSchema,
    conversation_id: str | None = None,
    *,
    default_status: DeliveryStatus = DeliveryStatus.DELIVERED,
) -> Message:
    """Server-side messages are always at least confirmed."""
    return Message(
        id=schema.id,
        conversation_id=schema.conversation_id or conversation_id or "",
        sender_id=schema.sender_id,
        sender_name=schema.sender_name,
        content=schema.content or "",
        type=message_type(schema.type),
        created_at=schema.created_at,
        delivery=_delivery(schema.status, default_status),
    )


def payload_to_entity(payload: NewMessagePayload) -> Message:
    return Message(
        id=payload.id,
        conversation_id=payload.conversation_id,
        sender_id=payload.sender_id,
        sender_name=payload.sender_name,
        content=payload.content,
        type=message_type(payload.type),
        created_at=payload.created_at,
        delivery=Confirmed(status=DeliveryStatus.DELIVERED),
    )
