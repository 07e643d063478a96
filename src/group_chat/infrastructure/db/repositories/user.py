from __future__ import annotations

from datetime import datetime

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from group_chat.domain.entities.user import User
from group_chat.infrastructure.db.mappers import user as mapper
from group_chat.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: int) -> User | None:
        model = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(model) if model else None

    async def get_by_name(self, name: str) -> User | None:
        stmt = select(UserModel).where(UserModel.name == name)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None


class UserWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, name: str, avatar_url: str) -> User:
        stmt = (
            insert(UserModel)
            .values(name=name, avatar_url=avatar_url)
            .returning(UserModel)
        )
        result = await self._session.execute(stmt)
        return mapper.model_to_entity(result.scalar_one())

    async def touch_last_seen(self, user_id: int, ts: datetime) -> None:
        stmt = update(UserModel).where(UserModel.id == user_id).values(last_seen=ts)
        await self._session.execute(stmt)
