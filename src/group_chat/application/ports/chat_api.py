from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from group_chat.application.dto.session import LoginResult
from group_chat.application.dto.message import SentMessage
from group_chat.domain.entities.member import Member
from group_chat.domain.entities.message import Message


class ChatApi(Protocol):
    """Server operations the client relies on.

    Implementations raise ``NetworkFailure``, ``ServerError`` or
    ``MalformedResponse`` and nothing else.
    """

    async def login(self, name: str) -> LoginResult: ...

    async def heartbeat(self, user_id: int) -> None: ...

    async def fetch_messages(
        self,
        group_id: int,
        *,
        since: datetime | None = None,
    ) -> list[Message]: ...

    async def send_message(
        self,
        group_id: int,
        *,
        text: str,
        is_anonymous: bool,
        user_id: int,
        temp_id: str,
    ) -> SentMessage: ...

    async def mark_read(self, group_id: int, message_ids: Sequence[int]) -> None: ...

    async def list_members(self, group_id: int) -> list[Member]: ...
