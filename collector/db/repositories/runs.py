"""Repository for processing runs."""

from typing import List

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from collector.db.models import Run
from collector.db.repositories.base import BaseRepository


class RunRepository(BaseRepository[Run]):
    """Repository for run CRUD."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Run)

    async def get_recent(self) -> List[Run]:
        """All runs, newest first (type eager-loaded)."""
        stmt = select(Run).order_by(desc(Run.created_at))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_status(self, status: str) -> List[Run]:
        stmt = (
            select(Run)
            .where(Run.status == status)
            .order_by(desc(Run.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
