from __future__ import annotations

from dataclasses import dataclass

from group_chat.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class SentMessage:
    """Server echo of a send, correlated by the caller-supplied temp id."""

    message: Message
    temp_id: str | None
