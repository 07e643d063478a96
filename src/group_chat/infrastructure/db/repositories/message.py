from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from group_chat.domain.entities.message import Message
from group_chat.domain.value_objects.enums import DeliveryStatus
from group_chat.infrastructure.db.mappers import message as mapper
from group_chat.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_messages(
        self,
        group_id: int,
        *,
        since: datetime | None = None,
        limit: int = 100,
    ) -> list[Message]:
        stmt = select(MessageModel).where(MessageModel.group_id == group_id)
        if since is not None:
            stmt = (
                stmt.where(MessageModel.created_at > since)
                .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
                .limit(limit)
            )
            result = await self._session.execute(stmt)
            return [mapper.model_to_entity(m) for m in result.scalars().all()]

        # Latest page, returned oldest first.
        stmt = stmt.order_by(MessageModel.created_at.desc(), MessageModel.id.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in reversed(result.scalars().all())]

    async def get_by_id(self, message_id: int) -> Message | None:
        model = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(model) if model else None


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        group_id: int,
        user_id: int,
        text: str,
        is_anonymous: bool,
    ) -> int:
        stmt = (
            insert(MessageModel)
            .values(
                group_id=group_id,
                user_id=user_id,
                text=text,
                is_anonymous=is_anonymous,
                status=DeliveryStatus.SENT.value,
            )
            .returning(MessageModel.id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def mark_read(self, group_id: int, message_ids: Sequence[int]) -> None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id.in_(list(message_ids)), MessageModel.group_id == group_id)
            .values(status=DeliveryStatus.READ.value)
        )
        await self._session.execute(stmt)
