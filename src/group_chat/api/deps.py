"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from group_chat.application.dto.principal import Principal
from group_chat.application.exceptions import AuthenticationError
from group_chat.application.ports.clock import Clock, SystemClock
from group_chat.config import settings
from group_chat.infrastructure.auth.hs256_tokens import HS256Tokens
from group_chat.infrastructure.db.session import AsyncSessionLocal
from group_chat.infrastructure.db.uow import SqlAlchemyUoW

_bearer_scheme = HTTPBearer()


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


_tokens: HS256Tokens | None = None


def get_tokens() -> HS256Tokens:
    global _tokens  # noqa: PLW0603
    if _tokens is None:
        _tokens = HS256Tokens(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _tokens


TokensDep = Annotated[HS256Tokens, Depends(get_tokens)]


def get_clock() -> Clock:
    return SystemClock()


ClockDep = Annotated[Clock, Depends(get_clock)]


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    tokens: TokensDep,
) -> Principal:
    try:
        return tokens.verify(credentials.credentials)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.detail,
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
