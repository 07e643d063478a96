from __future__ import annotations

from dataclasses import dataclass

from group_chat.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class LoginResult:
    user: User
    token: str
    message: str = ""


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Who is logged in and which group they are looking at."""

    user: User
    token: str
    group_id: int

    @property
    def user_id(self) -> int:
        return self.user.id
