"""Repository for collector entries."""

from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import asc, delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from collector.db.models import Entry, EntryStatus, Run
from collector.db.repositories.base import BaseRepository


def as_uuids(ids: Iterable) -> List[UUID]:
    """Normalize a mix of UUID objects and strings to UUIDs."""
    return [i if isinstance(i, UUID) else UUID(str(i)) for i in ids]


class EntryRepository(BaseRepository[Entry]):
    """Repository for entry CRUD, run membership and status changes."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Entry)

    async def create_many(self, content: str, type_ids: Sequence[UUID]) -> List[Entry]:
        """Create one pending entry per type with the same content."""
        entries = [
            Entry(type_id=type_id, content=content, status=EntryStatus.PENDING)
            for type_id in type_ids
        ]
        self.session.add_all(entries)
        await self.session.flush()
        for entry in entries:
            await self.session.refresh(entry)
        return entries

    async def get_many(self, ids: Iterable) -> List[Entry]:
        """Get entries by ID, oldest first."""
        stmt = (
            select(Entry)
            .where(Entry.id.in_(as_uuids(ids)))
            .order_by(asc(Entry.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_status(
        self,
        status: str,
        type_ids: Optional[Sequence[UUID]] = None,
        limit: int = 500,
    ) -> list:
        """Entries with a status, newest first, with their run name and status.

        Returns (Entry, run_name, run_status) rows.
        """
        stmt = (
            select(Entry, Run.name, Run.status)
            .outerjoin(Run, Entry.run_id == Run.id)
            .where(Entry.status == status)
            .order_by(desc(Entry.created_at))
            .limit(limit)
        )
        if type_ids:
            stmt = stmt.where(Entry.type_id.in_(type_ids))
        result = await self.session.execute(stmt)
        return list(result.all())

    async def list_for_run(self, run_id: UUID) -> List[Entry]:
        """Entries currently linked to a run, oldest first."""
        stmt = (
            select(Entry)
            .where(Entry.run_id == run_id)
            .order_by(asc(Entry.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_unassigned_pending(self, type_id: UUID) -> List[Entry]:
        """Pending entries of a type not linked to any run, oldest first."""
        stmt = (
            select(Entry)
            .where(
                Entry.type_id == type_id,
                Entry.status == EntryStatus.PENDING,
                Entry.run_id.is_(None),
            )
            .order_by(asc(Entry.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_pending_for_list(self, type_id: UUID, limit: int) -> List[Entry]:
        """Pending entries of a type for the workflow's plain-text list."""
        stmt = (
            select(Entry)
            .where(Entry.type_id == type_id, Entry.status == EntryStatus.PENDING)
            .order_by(asc(Entry.created_at))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_claimable_ids(self, type_id: UUID, limit: int) -> List[UUID]:
        """IDs of the oldest unassigned pending entries of a type.

        Rows are locked with SKIP LOCKED where the dialect supports it, so
        two concurrent claims on PostgreSQL pick disjoint rows.
        """
        stmt = (
            select(Entry.id)
            .where(
                Entry.type_id == type_id,
                Entry.status == EntryStatus.PENDING,
                Entry.run_id.is_(None),
            )
            .order_by(asc(Entry.created_at))
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def claim_ids(self, run_id: UUID, ids: Sequence[UUID]) -> int:
        """Assign entries to a run only if they are still pending and unassigned.

        Returns the number of rows actually updated.
        """
        if not ids:
            return 0
        stmt = (
            update(Entry)
            .where(
                Entry.id.in_(as_uuids(ids)),
                Entry.status == EntryStatus.PENDING,
                Entry.run_id.is_(None),
            )
            .values(status=EntryStatus.PROCESSING, run_id=run_id)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def release(self, entry_id: UUID, run_id: UUID) -> int:
        """Unlink one entry from a run and put it back to pending."""
        stmt = (
            update(Entry)
            .where(Entry.id == entry_id, Entry.run_id == run_id)
            .values(run_id=None, status=EntryStatus.PENDING)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def release_run(self, run_id: UUID) -> tuple[int, int]:
        """Detach every entry from a run.

        Entries still processing go back to pending; entries that already
        moved on (processed, archived) keep their status.

        Returns (released, unlinked).
        """
        released = await self.session.execute(
            update(Entry)
            .where(Entry.run_id == run_id, Entry.status == EntryStatus.PROCESSING)
            .values(run_id=None, status=EntryStatus.PENDING)
            .execution_options(synchronize_session="evaluate")
        )
        unlinked = await self.session.execute(
            update(Entry)
            .where(Entry.run_id == run_id)
            .values(run_id=None)
            .execution_options(synchronize_session="evaluate")
        )
        return released.rowcount, unlinked.rowcount

    async def set_status(self, ids: Iterable, status: str) -> int:
        """Set the status of many entries at once."""
        ids = as_uuids(ids)
        if not ids:
            return 0
        stmt = (
            update(Entry)
            .where(Entry.id.in_(ids))
            .values(status=status)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def bulk_update(self, ids: Iterable, **values) -> int:
        """Apply the same column values to many entries."""
        ids = as_uuids(ids)
        if not ids or not values:
            return 0
        stmt = (
            update(Entry)
            .where(Entry.id.in_(ids))
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def delete_many(self, ids: Iterable) -> int:
        """Delete many entries by ID."""
        ids = as_uuids(ids)
        if not ids:
            return 0
        stmt = (
            delete(Entry)
            .where(Entry.id.in_(ids))
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount
