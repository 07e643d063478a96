from __future__ import annotations

from datetime import datetime

from group_chat.domain.entities.member import Member
from group_chat.domain.entities.user import User
from group_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        name=model.name,
        avatar_url=model.avatar_url,
        created_at=model.created_at,
        last_seen=model.last_seen,
    )


def model_to_member(model: UserModel, role: str, joined_at: datetime) -> Member:
    return Member(
        id=model.id,
        name=model.name,
        avatar_url=model.avatar_url,
        last_seen=model.last_seen,
        role=role,
        joined_at=joined_at,
    )
