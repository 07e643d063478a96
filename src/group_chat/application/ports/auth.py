from __future__ import annotations

from datetime import datetime
from typing import Protocol

from group_chat.application.dto.principal import Principal


class TokenIssuer(Protocol):
    def issue(self, user_id: int, name: str, issued_at: datetime) -> str: ...


class TokenVerifier(Protocol):
    def verify(self, token: str) -> Principal: ...
