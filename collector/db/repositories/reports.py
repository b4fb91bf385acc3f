"""Repository for reports."""

from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from collector.db.models import Report
from collector.db.repositories.base import BaseRepository


class ReportRepository(BaseRepository[Report]):
    """Repository for report CRUD and listing."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Report)

    async def get_recent(self, status: Optional[str] = None, limit: int = 200) -> List[Report]:
        """Reports newest first, optionally filtered by status."""
        stmt = select(Report).order_by(desc(Report.created_at)).limit(limit)
        if status:
            stmt = stmt.where(Report.status == status)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
