"""Repository for entry types."""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collector.db.models import Type
from collector.db.repositories.base import BaseRepository


class TypeRepository(BaseRepository[Type]):
    """Repository for type CRUD."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Type)

    async def list_by_name(self) -> List[Type]:
        """All types ordered by name."""
        stmt = select(Type).order_by(Type.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

