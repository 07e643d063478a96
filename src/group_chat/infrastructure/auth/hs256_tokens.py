from __future__ import annotations

from datetime import datetime

import jwt

from group_chat.application.dto.principal import Principal
from group_chat.application.exceptions import AuthenticationError


class HS256Tokens:
    """Issue and verify session JWTs signed with a shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def issue(self, user_id: int, name: str, issued_at: datetime) -> str:
        payload = {"sub": str(user_id), "name": name, "iat": int(issued_at.timestamp())}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
            return Principal(user_id=int(payload["sub"]), name=payload.get("name", ""))
        except (jwt.PyJWTError, KeyError, ValueError) as exc:
            raise AuthenticationError(f"Invalid token: {exc}") from exc
