"""Create the schema and seed the default group."""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select

from group_chat.config import settings
from group_chat.infrastructure.db import models  # noqa: F401
from group_chat.infrastructure.db.base import Base
from group_chat.infrastructure.db.models.group import GroupModel
from group_chat.infrastructure.db.session import AsyncSessionLocal, engine

logger = logging.getLogger(__name__)


async def migrate() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema created/verified on %s", settings.POSTGRES_DB)

    async with AsyncSessionLocal() as session:
        existing = await session.execute(
            select(GroupModel.id).where(GroupModel.id == settings.DEFAULT_GROUP_ID)
        )
        if existing.scalar_one_or_none() is None:
            session.add(
                GroupModel(
                    id=settings.DEFAULT_GROUP_ID,
                    name=settings.DEFAULT_GROUP_NAME,
                    description="Default group every user joins on login",
                )
            )
            await session.commit()
            logger.info("Seeded group %d (%s)", settings.DEFAULT_GROUP_ID, settings.DEFAULT_GROUP_NAME)
        else:
            logger.info("Group %d already present", settings.DEFAULT_GROUP_ID)

    await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(migrate())


if __name__ == "__main__":
    main()
