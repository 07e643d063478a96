from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class User:
    id: int
    name: str
    avatar_url: str | None
    created_at: datetime
    last_seen: datetime | None = None
