from __future__ import annotations

from datetime import datetime, timezone

from group_chat.api.v1.schemas.auth import UserResponse
from group_chat.api.v1.schemas.group import MemberResponse
from group_chat.api.v1.schemas.message import MessageResponse
from group_chat.domain.entities.member import Member
from group_chat.domain.entities.message import Message
from group_chat.domain.entities.user import User
from group_chat.domain.value_objects.ids import DurableId


def _utc(ts: datetime | None) -> datetime | None:
    # Servers that store naive timestamps mean UTC.
    if ts is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def message_to_entity(schema: MessageResponse) -> Message:
    return Message(
        id=DurableId(schema.id),
        group_id=schema.group_id,
        user_id=schema.user_id,
        text=schema.text,
        is_anonymous=schema.is_anonymous,
        status=schema.status,
        created_at=_utc(schema.created_at),  # type: ignore[arg-type]
        user_name=schema.user_name,
        avatar_url=schema.avatar_url,
    )


def member_to_entity(schema: MemberResponse) -> Member:
    return Member(
        id=schema.id,
        name=schema.name,
        avatar_url=schema.avatar_url,
        last_seen=_utc(schema.last_seen),
        role=schema.role,
        joined_at=_utc(schema.joined_at),  # type: ignore[arg-type]
        online=schema.online,
    )


def user_to_entity(schema: UserResponse) -> User:
    return User(
        id=schema.id,
        name=schema.name,
        avatar_url=schema.avatar_url,
        created_at=_utc(schema.created_at),  # type: ignore[arg-type]
    )
