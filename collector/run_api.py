"""REST API for processing runs: create, claim, trigger, update, delete."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from collector import cache
from collector.db.models import RunStatus
from collector.dependencies import RunLifecycleDep, RunRepoDep
from collector.exceptions import ValidationError
from collector.models import serialize_run, serialize_run_entry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/run", tags=["Runs"])


class RunCreate(BaseModel):
    name: Optional[str] = None
    type_id: Optional[UUID] = None
    limit_count: Optional[int] = None


class RunUpdate(BaseModel):
    name: Optional[str] = None
    status: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ClaimRequest(BaseModel):
    type_id: Optional[UUID] = None
    limit: Optional[int] = None


class AddEntriesRequest(BaseModel):
    entry_ids: list[UUID] = []


@router.post("")
async def create_run(body: RunCreate, lifecycle: RunLifecycleDep):
    """Create a run in the created state."""
    run = await lifecycle.create_run(body.name, body.type_id, body.limit_count)
    return {"run_id": str(run.id)}


@router.get("")
async def list_runs(repo: RunRepoDep, status: Optional[str] = None):
    """List runs newest first, with their type name, optionally one status."""
    if status and status not in RunStatus.ALL:
        raise ValidationError(f"Invalid status {status!r}")

    key = status or "all"
    cached = cache.get_cached(cache.RUNS, key)
    if cached is not None:
        return cached

    runs = await repo.get_by_status(status) if status else await repo.get_recent()
    data = [serialize_run(r) for r in runs]
    cache.cache_result(cache.RUNS, key, data)
    return data


@router.get("/{run_id}")
async def get_run(run_id: UUID, lifecycle: RunLifecycleDep):
    """Get a run with its entries (oldest first)."""
    run, entries = await lifecycle.get_run(run_id)
    return {
        **serialize_run(run),
        "entries": [serialize_run_entry(e) for e in entries],
    }


@router.patch("/{run_id}")
async def update_run(run_id: UUID, body: RunUpdate, lifecycle: RunLifecycleDep):
    """Partially update a run.

    Only fields present in the request body are applied; an explicit null
    clears started_at / completed_at.
    """
    changes = body.model_dump(exclude_unset=True)
    run = await lifecycle.update_run(run_id, changes)
    return {"success": True, "run": serialize_run(run)}


@router.delete("/{run_id}")
async def delete_run(run_id: UUID, lifecycle: RunLifecycleDep):
    """Delete a run, releasing its entries."""
    await lifecycle.delete_run(run_id)
    return {"success": True}


@router.post("/{run_id}/claim")
async def claim_entries(run_id: UUID, body: ClaimRequest, lifecycle: RunLifecycleDep):
    """Claim the oldest unassigned pending entries of a type into the run."""
    entries = await lifecycle.claim_entries(run_id, body.type_id, body.limit)
    if not entries:
        return {"entries": [], "message": "No pending entries found"}

    return {
        "entries": [{"id": str(e.id), "content": e.content} for e in entries],
        "claimed_count": len(entries),
    }


@router.post("/{run_id}/entries")
async def add_entries(run_id: UUID, body: AddEntriesRequest, lifecycle: RunLifecycleDep):
    """Add hand-picked pending entries to the run."""
    entries = await lifecycle.add_entries(run_id, body.entry_ids)
    return {
        "entries": [{"id": str(e.id), "content": e.content} for e in entries],
        "claimed_count": len(entries),
    }


@router.delete("/{run_id}/entries/{entry_id}")
async def remove_entry(run_id: UUID, entry_id: UUID, lifecycle: RunLifecycleDep):
    """Put one entry of a not-yet-started run back to pending."""
    await lifecycle.remove_entry(run_id, entry_id)
    return {"success": True}


@router.post("/{run_id}/trigger")
async def trigger_run(run_id: UUID, lifecycle: RunLifecycleDep):
    """Mark the run running and call the workflow webhook."""
    await lifecycle.trigger_run(run_id)
    return {"success": True, "message": "Webhook triggered successfully"}
