from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from group_chat.domain.value_objects.enums import DeliveryStatus
from group_chat.domain.value_objects.ids import MessageKey, is_provisional


@dataclass(frozen=True, slots=True)
class Message:
    id: MessageKey
    group_id: int
    user_id: int
    text: str
    is_anonymous: bool
    status: DeliveryStatus
    created_at: datetime
    user_name: str | None = None
    avatar_url: str | None = None

    @property
    def is_provisional(self) -> bool:
        return is_provisional(self.id)

    def with_status(self, status: DeliveryStatus) -> Message:
        return replace(self, status=status)
