"""REST API for collector entries."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from collector import cache
from collector.db.models import EntryStatus
from collector.dependencies import DbSession, EntryRepoDep, TypeRepoDep
from collector.exceptions import NotFoundError, StoreError, ValidationError
from collector.models import serialize_entry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/entries", tags=["Entries"])


class EntryCreate(BaseModel):
    content: str
    type_ids: list[UUID]


class EntryUpdate(BaseModel):
    content: Optional[str] = None
    type_id: Optional[UUID] = None
    status: Optional[str] = None


class BulkUpdate(BaseModel):
    ids: list[UUID]
    type_id: Optional[UUID] = None
    status: Optional[str] = None


class BulkDelete(BaseModel):
    ids: list[UUID]


async def _commit(session, operation: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"{operation}: commit failed error={e}")
        raise StoreError(str(e)) from e
    cache.invalidate(cache.ENTRIES)


def _check_status(status: Optional[str]) -> None:
    if status is not None and status not in EntryStatus.ALL:
        raise ValidationError(f"Invalid status {status!r}")


@router.get("")
async def list_entries(
    repo: EntryRepoDep,
    status: str = EntryStatus.PENDING,
    type_id: Optional[list[UUID]] = Query(None),
    limit: int = 500,
):
    """List entries of one status, newest first, with their run."""
    _check_status(status)
    key = (status, tuple(sorted(str(t) for t in type_id or [])), limit)
    cached = cache.get_cached(cache.ENTRIES, key)
    if cached is not None:
        return cached

    rows = await repo.list_by_status(status, type_ids=type_id, limit=limit)
    data = [serialize_entry(e, run_name, run_status) for e, run_name, run_status in rows]
    cache.cache_result(cache.ENTRIES, key, data)
    return data


@router.get("/pending/{type_id}")
async def list_pending_for_type(type_id: UUID, repo: EntryRepoDep):
    """Unassigned pending entries of a type, oldest first."""
    entries = await repo.get_unassigned_pending(type_id)
    return [serialize_entry(e) for e in entries]


@router.post("")
async def create_entries(body: EntryCreate, repo: EntryRepoDep, types: TypeRepoDep, session: DbSession):
    """Create one pending entry per selected type."""
    if not body.content.strip():
        raise ValidationError("content is required")
    if not body.type_ids:
        raise ValidationError("at least one type_id is required")
    for type_id in body.type_ids:
        if not await types.exists(type_id):
            raise ValidationError(f"Unknown type_id {type_id}")

    entries = await repo.create_many(body.content, body.type_ids)
    await _commit(session, "create_entries")

    logger.info(f"Entries created: count={len(entries)}")
    return [serialize_entry(e) for e in entries]


@router.patch("/{entry_id}")
async def update_entry(entry_id: UUID, body: EntryUpdate, repo: EntryRepoDep, session: DbSession):
    """Update content, type or status of one entry."""
    kwargs = body.model_dump(exclude_none=True)
    if not kwargs:
        raise ValidationError("No fields to update")
    _check_status(kwargs.get("status"))

    entry = await repo.update(entry_id, **kwargs)
    if not entry:
        raise NotFoundError("Entry not found")
    await _commit(session, "update_entry")

    return serialize_entry(entry)


@router.delete("/{entry_id}")
async def delete_entry(entry_id: UUID, repo: EntryRepoDep, session: DbSession):
    """Delete one entry."""
    deleted = await repo.delete(entry_id)
    if not deleted:
        raise NotFoundError("Entry not found")
    await _commit(session, "delete_entry")

    return {"success": True}


@router.post("/bulk-update")
async def bulk_update(body: BulkUpdate, repo: EntryRepoDep, session: DbSession):
    """Set type and/or status on many entries."""
    values = body.model_dump(exclude_none=True, exclude={"ids"})
    if not values:
        raise ValidationError("No fields to update")
    _check_status(values.get("status"))

    updated = await repo.bulk_update(body.ids, **values)
    await _commit(session, "bulk_update")

    logger.info(f"Entries bulk-updated: requested={len(body.ids)} updated={updated} fields={sorted(values)}")
    return {"success": True, "updated": updated}


@router.post("/bulk-delete")
async def bulk_delete(body: BulkDelete, repo: EntryRepoDep, session: DbSession):
    """Delete many entries."""
    deleted = await repo.delete_many(body.ids)
    await _commit(session, "bulk_delete")

    logger.info(f"Entries bulk-deleted: requested={len(body.ids)} deleted={deleted}")
    return {"success": True, "deleted": deleted}
