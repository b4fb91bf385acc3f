"""Repository for Research Hub queue items and digests."""

from typing import List

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from collector.db.models import Digest, ResearchItem
from collector.db.repositories.base import BaseRepository


class ResearchRepository(BaseRepository[ResearchItem]):
    """Repository for queued research notes."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ResearchItem)

    async def get_recent(self, limit: int = 20) -> List[ResearchItem]:
        stmt = select(ResearchItem).order_by(desc(ResearchItem.created_at)).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class DigestRepository(BaseRepository[Digest]):
    """Read access to digests written by the workflow."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Digest)

    async def get_feed(self, limit: int = 20) -> List[Digest]:
        """Latest digests for the feed."""
        stmt = select(Digest).order_by(desc(Digest.created_at)).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
