from __future__ import annotations

from typing import Protocol

from group_chat.domain.entities.member import Member


class MemberReader(Protocol):
    async def list_members(self, group_id: int) -> list[Member]:
        """Members of a group ordered by name; ``online`` is left unset."""
        ...


class MemberWriter(Protocol):
    async def join_if_absent(self, group_id: int, user_id: int) -> None: ...
