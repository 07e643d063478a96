from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from group_chat.domain.entities.member import Member
from group_chat.domain.value_objects.enums import MemberRole
from group_chat.infrastructure.db.mappers import user as mapper
from group_chat.infrastructure.db.models.group import GroupMemberModel
from group_chat.infrastructure.db.models.user import UserModel


class MemberReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_members(self, group_id: int) -> list[Member]:
        stmt = (
            select(UserModel, GroupMemberModel.role, GroupMemberModel.joined_at)
            .join(GroupMemberModel, GroupMemberModel.user_id == UserModel.id)
            .where(GroupMemberModel.group_id == group_id)
            .order_by(UserModel.name)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_member(user, role, joined_at) for user, role, joined_at in result.all()]


class MemberWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def join_if_absent(self, group_id: int, user_id: int) -> None:
        stmt = (
            pg_insert(GroupMemberModel)
            .values(group_id=group_id, user_id=user_id, role=MemberRole.MEMBER.value)
            .on_conflict_do_nothing(constraint="uq_group_member")
        )
        await self._session.execute(stmt)
