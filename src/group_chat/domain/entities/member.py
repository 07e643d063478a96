from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Member:
    """A user as seen through their membership of one group."""

    id: int
    name: str
    avatar_url: str | None
    last_seen: datetime | None
    role: str
    joined_at: datetime
    online: bool = False
