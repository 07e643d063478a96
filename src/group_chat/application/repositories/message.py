from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from group_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(
        self,
        group_id: int,
        *,
        since: datetime | None = None,
        limit: int = 100,
    ) -> list[Message]:
        """Ascending by creation time.

        With ``since`` the oldest ``limit`` messages created strictly after it,
        otherwise the most recent ``limit`` messages.
        """
        ...

    async def get_by_id(self, message_id: int) -> Message | None: ...


class MessageWriter(Protocol):
    async def create(
        self,
        group_id: int,
        user_id: int,
        text: str,
        is_anonymous: bool,
    ) -> int:
        """Insert a message and return its durable id."""
        ...

    async def mark_read(self, group_id: int, message_ids: Sequence[int]) -> None: ...
