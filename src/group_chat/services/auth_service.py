from __future__ import annotations

import logging
from urllib.parse import quote

from group_chat.application.dto.session import LoginResult
from group_chat.application.exceptions import ValidationError
from group_chat.application.ports.auth import TokenIssuer
from group_chat.application.ports.clock import Clock
from group_chat.application.uow import UnitOfWork
from group_chat.config import settings

logger = logging.getLogger(__name__)


def avatar_url_for(name: str) -> str:
    return settings.AVATAR_URL_TEMPLATE.format(seed=quote(name))


async def login(
    name: str,
    uow: UnitOfWork,
    tokens: TokenIssuer,
    clock: Clock,
    *,
    group_id: int | None = None,
) -> LoginResult:
    """Log in by name, creating the user on first sight.

    Also refreshes the user's heartbeat and makes sure they belong to the
    default group.
    """
    trimmed = name.strip()
    if not trimmed:
        raise ValidationError("Name is required")

    user = await uow.users.get_by_name(trimmed)
    if user is None:
        user = await uow.users_w.create(trimmed, avatar_url_for(trimmed))
        logger.info("Created user %d (%s)", user.id, trimmed)

    now = clock.now()
    await uow.users_w.touch_last_seen(user.id, now)
    await uow.members_w.join_if_absent(group_id or settings.DEFAULT_GROUP_ID, user.id)
    await uow.commit()

    token = tokens.issue(user.id, user.name, now)
    return LoginResult(user=user, token=token, message="Login successful")


async def heartbeat(user_id: int, uow: UnitOfWork, clock: Clock) -> None:
    await uow.users_w.touch_last_seen(user_id, clock.now())
    await uow.commit()
