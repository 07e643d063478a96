from __future__ import annotations

from enum import StrEnum


class DeliveryStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    READ = "read"


class SendState(StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    DISCARDED = "discarded"


class MemberRole(StrEnum):
    MEMBER = "member"
    ADMIN = "admin"


class StoreChangeKind(StrEnum):
    ADDED = "added"
    REPLACED = "replaced"
    REMOVED = "removed"
    CLEARED = "cleared"
