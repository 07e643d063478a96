from __future__ import annotations

from datetime import datetime
from typing import Protocol

from group_chat.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...

    async def get_by_name(self, name: str) -> User | None: ...


class UserWriter(Protocol):
    async def create(self, name: str, avatar_url: str) -> User: ...

    async def touch_last_seen(self, user_id: int, ts: datetime) -> None: ...
