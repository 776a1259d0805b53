from __future__ import annotations

from messaging_client.domain.entities.conversation import Conversation
from messaging_client.domain.entities.participant import Participant
from messaging_client.domain.value_objects.enums import ConversationType
from messaging_client.infrastructure.http.schemas import ConversationSchema, ParticipantSchema
from messaging_client.infrastructure.mappers import message as message_mapper


def participant_to_entity(schema: ParticipantSchema) -> Participant:
    return Participant(
        user_id=schema.user_id,
        display_name=schema.name,
        avatar_url=schema.avatar,
        role=schema.role,
        is_online=schema.is_online,
        last_seen=schema.last_seen,
    )


def schema_to_entity(schema: ConversationSchema) -> Conversation:
    try:
        conversation_type = ConversationType(schema.type)
    except ValueError:
        conversation_type = ConversationType.GROUP
    last_message = (
        message_mapper.schema_to_entity(schema.last_message, schema.id)
        if schema.last_message is not None
        else None
    )
    return Conversation(
        id=schema.id,
        type=conversation_type,
        participants=tuple(participant_to_entity(p) for p in schema.participants),
        created_at=schema.created_at,
        updated_at=schema.updated_at,
        title=schema.name,
        last_message=last_message,
        unread_count=max(0, schema.unread_count),
        is_muted=schema.is_muted,
    )
