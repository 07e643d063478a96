from __future__ import annotations

from group_chat.domain.entities.message import Message
from group_chat.domain.value_objects.enums import DeliveryStatus
from group_chat.domain.value_objects.ids import DurableId
from group_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=DurableId(model.id),
        group_id=model.group_id,
        user_id=model.user_id,
        text=model.text,
        is_anonymous=model.is_anonymous,
        status=DeliveryStatus(model.status),
        created_at=model.created_at,
        user_name=model.user.name if model.user else None,
        avatar_url=model.user.avatar_url if model.user else None,
    )
