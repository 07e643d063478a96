from __future__ import annotations

from dataclasses import dataclass

from group_chat.domain.entities.message import Message
from group_chat.domain.value_objects.enums import StoreChangeKind
from group_chat.domain.value_objects.ids import MessageKey


@dataclass(frozen=True, slots=True)
class StoreChange:
    kind: StoreChangeKind
    message: Message | None = None
    previous_id: MessageKey | None = None
