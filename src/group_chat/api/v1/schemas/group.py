from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class MemberResponse(BaseModel):
    id: int
    name: str
    avatar_url: str | None = None
    last_seen: datetime | None = None
    role: str
    joined_at: datetime
    online: bool = False

    model_config = {"from_attributes": True}
