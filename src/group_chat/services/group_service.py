from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timedelta

from group_chat.application.exceptions import NotFoundError, ValidationError
from group_chat.application.ports.clock import Clock
from group_chat.application.uow import UnitOfWork
from group_chat.config import settings
from group_chat.domain.entities.member import Member
from group_chat.domain.entities.message import Message
from group_chat.domain.presence import is_online


async def list_members(group_id: int, uow: UnitOfWork, clock: Clock) -> list[Member]:
    """Members ordered by name, with ``online`` computed from ``last_seen``."""
    members = await uow.members.list_members(group_id)
    now = clock.now()
    window = timedelta(seconds=settings.PRESENCE_WINDOW_SECONDS)
    return [replace(m, online=is_online(m.last_seen, now, window)) for m in members]


async def list_messages(
    group_id: int,
    since: datetime | None,
    uow: UnitOfWork,
) -> list[Message]:
    return await uow.messages.list_messages(
        group_id, since=since, limit=settings.MESSAGE_PAGE_LIMIT,
    )


async def send_message(
    group_id: int,
    user_id: int | None,
    text: str,
    is_anonymous: bool,
    uow: UnitOfWork,
) -> Message:
    body = text.strip()
    if not body:
        raise ValidationError("Message text is required")
    if not user_id:
        raise ValidationError("User ID is required")

    message_id = await uow.messages_w.create(group_id, user_id, body, is_anonymous)
    await uow.commit()

    message = await uow.messages.get_by_id(message_id)
    if message is None:
        raise NotFoundError(f"Message {message_id} not found")
    return message


async def mark_read(group_id: int, message_ids: Sequence[int], uow: UnitOfWork) -> None:
    if not message_ids:
        raise ValidationError("Message IDs are required")
    await uow.messages_w.mark_read(group_id, message_ids)
    await uow.commit()
