"""Run lifecycle: creation, entry claiming, status changes and triggering.

A run moves created -> running -> completed | failed. Entries join a run by
being claimed (pending -> processing) and leave it by being released
(back to pending). Every operation is one transaction on the request's
session and invalidates the cached lists it touched after committing.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collector import cache
from collector.config import settings
from collector.db.models import RUN_LIMIT_CEILING, RUN_LIMIT_FLOOR, Entry, Run, RunStatus
from collector.db.repositories.entries import EntryRepository, as_uuids
from collector.db.repositories.runs import RunRepository
from collector.db.repositories.types import TypeRepository
from collector.exceptions import (
    ClaimConflictError,
    NotFoundError,
    StoreError,
    UpstreamError,
    ValidationError,
)
from collector.services import webhook

logger = logging.getLogger(__name__)

# Transitions of the normal lifecycle. running -> created is the trigger
# revert; failed -> created lets a failed run be retried.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    RunStatus.CREATED: {RunStatus.RUNNING},
    RunStatus.RUNNING: {RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CREATED},
    RunStatus.COMPLETED: set(),
    RunStatus.FAILED: {RunStatus.CREATED},
}

RUN_FIELDS = ("name", "status", "started_at", "completed_at")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_allowed_transition(current: str, new: str) -> bool:
    """Check a status change against the lifecycle (same status always passes)."""
    return current == new or new in ALLOWED_TRANSITIONS.get(current, set())


class RunLifecycle:
    """Owns Run state transitions and run membership of entries."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.runs = RunRepository(session)
        self.entries = EntryRepository(session)
        self.types = TypeRepository(session)

    async def _commit(self, operation: str, **context) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"{operation}: commit failed {context} error={e}")
            raise StoreError(str(e)) from e

    async def _get_run(self, run_id: UUID) -> Run:
        run = await self.runs.get_by_id(run_id)
        if run is None:
            raise NotFoundError(f"Run {run_id} not found")
        return run

    # -------------------------------------------------------------------------
    # Create / read
    # -------------------------------------------------------------------------

    async def create_run(
        self,
        name: Optional[str],
        type_id: Optional[UUID],
        limit_count: Optional[int] = None,
    ) -> Run:
        """Create a run in the created state."""
        if not name or not type_id:
            logger.warning(f"create_run: missing fields name={name!r} type_id={type_id}")
            raise ValidationError("name and type_id are required")

        if limit_count is None:
            limit_count = settings.RUN_DEFAULT_LIMIT
        low = max(settings.RUN_LIMIT_MIN, RUN_LIMIT_FLOOR)
        high = min(settings.RUN_LIMIT_MAX, RUN_LIMIT_CEILING)
        if not low <= limit_count <= high:
            raise ValidationError(f"limit_count must be between {low} and {high}")

        if not await self.types.exists(type_id):
            raise ValidationError(f"Unknown type_id {type_id}")

        run = await self.runs.create(
            name=name,
            type_id=type_id,
            limit_count=limit_count,
            status=RunStatus.CREATED,
        )
        await self._commit("create_run", name=name)
        cache.invalidate(cache.RUNS)

        logger.info(f"Run created: run_id={run.id} name={run.name!r} limit={limit_count}")
        return run

    async def get_run(self, run_id: UUID) -> tuple[Run, List[Entry]]:
        """Run plus its entries, oldest first."""
        run = await self._get_run(run_id)
        entries = await self.entries.list_for_run(run_id)
        logger.debug(f"Run fetched: run_id={run_id} entries={len(entries)}")
        return run, entries

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    async def claim_entries(
        self,
        run_id: UUID,
        type_id: Optional[UUID],
        limit: Optional[int],
    ) -> List[Entry]:
        """Claim up to `limit` of the oldest unassigned pending entries of a type.

        The update only touches rows that are still pending and unassigned;
        if fewer rows change than were selected, another claim got there
        first and the whole claim is rolled back.
        """
        if not type_id or not limit or limit < 1:
            logger.warning(f"claim_entries: missing fields run_id={run_id} type_id={type_id} limit={limit}")
            raise ValidationError("type_id and limit are required")

        await self._get_run(run_id)

        ids = await self.entries.find_claimable_ids(type_id, limit)
        if not ids:
            logger.info(f"No pending entries to claim: run_id={run_id} type_id={type_id}")
            return []

        claimed = await self.entries.claim_ids(run_id, ids)
        if claimed != len(ids):
            await self.session.rollback()
            logger.warning(
                f"Claim conflict: run_id={run_id} selected={len(ids)} updated={claimed}"
            )
            raise ClaimConflictError(
                f"{len(ids) - claimed} of {len(ids)} entries were claimed concurrently, retry the claim"
            )

        await self._commit("claim_entries", run_id=run_id)
        cache.invalidate(cache.ENTRIES, cache.RUNS)

        logger.info(f"Entries claimed: run_id={run_id} claimed_count={claimed}")
        return await self.entries.get_many(ids)

    async def add_entries(self, run_id: UUID, entry_ids: Sequence[UUID]) -> List[Entry]:
        """Claim a hand-picked set of entries into a run."""
        ids = list(dict.fromkeys(as_uuids(entry_ids)))
        if not ids:
            raise ValidationError("entry_ids is required")

        await self._get_run(run_id)

        claimed = await self.entries.claim_ids(run_id, ids)
        if claimed != len(ids):
            await self.session.rollback()
            logger.warning(
                f"Add entries conflict: run_id={run_id} requested={len(ids)} updated={claimed}"
            )
            raise ClaimConflictError(
                "Some entries are no longer pending or already belong to a run"
            )

        await self._commit("add_entries", run_id=run_id)
        cache.invalidate(cache.ENTRIES, cache.RUNS)

        logger.info(f"Entries added to run: run_id={run_id} count={claimed}")
        return await self.entries.get_many(ids)

    async def remove_entry(self, run_id: UUID, entry_id: UUID) -> None:
        """Release one entry from a run that has not started yet."""
        run = await self._get_run(run_id)
        if run.status != RunStatus.CREATED:
            raise ValidationError(
                f"Entries can only be removed from a run in '{RunStatus.CREATED}' state "
                f"(run is '{run.status}')"
            )

        released = await self.entries.release(entry_id, run_id)
        if not released:
            raise NotFoundError(f"Entry {entry_id} is not part of run {run_id}")

        await self._commit("remove_entry", run_id=run_id, entry_id=entry_id)
        cache.invalidate(cache.ENTRIES, cache.RUNS)
        logger.info(f"Entry removed from run: run_id={run_id} entry_id={entry_id}")

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    async def update_run(self, run_id: UUID, changes: dict[str, Any]) -> Run:
        """Partially update a run.

        `changes` holds only the fields the caller sent; an explicit None for
        started_at / completed_at clears the timestamp. Moving to running
        stamps started_at and moving to completed / failed stamps
        completed_at unless the caller provided them.
        """
        run = await self._get_run(run_id)
        data = {k: v for k, v in changes.items() if k in RUN_FIELDS}

        status = data.get("status")
        if "status" in data:
            if status not in RunStatus.ALL:
                raise ValidationError(f"Invalid status {status!r}")
            if not is_allowed_transition(run.status, status):
                if settings.STRICT_RUN_TRANSITIONS:
                    raise ValidationError(
                        f"Illegal run transition {run.status} -> {status}"
                    )
                logger.warning(f"Out-of-lifecycle transition: run_id={run_id} {run.status} -> {status}")

            now = utcnow()
            if status == RunStatus.RUNNING and "started_at" not in data:
                data["started_at"] = now
            if status in (RunStatus.COMPLETED, RunStatus.FAILED) and "completed_at" not in data:
                data["completed_at"] = now

        if "name" in data and not data["name"]:
            raise ValidationError("name cannot be empty")

        logger.info(f"Updating run: run_id={run_id} fields={sorted(data)}")
        run = await self.runs.update(run_id, **data)
        await self._commit("update_run", run_id=run_id)
        cache.invalidate(cache.RUNS, cache.ENTRIES, cache.REPORTS)

        logger.info(f"Run updated: run_id={run_id} status={run.status}")
        return run

    async def trigger_run(self, run_id: UUID) -> None:
        """Mark a run running and call the workflow webhook.

        If the webhook fails the run goes back to created with started_at
        cleared, and the UpstreamError is re-raised for the caller.
        """
        run = await self._get_run(run_id)
        webhook.ensure_configured()

        if run.status != RunStatus.RUNNING:
            await self.update_run(run_id, {"status": RunStatus.RUNNING})

        try:
            await webhook.trigger_run(run_id)
        except UpstreamError as e:
            logger.error(f"Trigger failed, reverting run to created: run_id={run_id} error={e.message}")
            await self.runs.update(run_id, status=RunStatus.CREATED, started_at=None)
            await self._commit("trigger_run.revert", run_id=run_id)
            cache.invalidate(cache.RUNS, cache.ENTRIES, cache.REPORTS)
            raise

        logger.info(f"Run triggered: run_id={run_id}")

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    async def delete_run(self, run_id: UUID) -> None:
        """Detach the run's entries and delete the run in one transaction."""
        await self._get_run(run_id)

        released, unlinked = await self.entries.release_run(run_id)
        await self.runs.delete(run_id)
        await self._commit("delete_run", run_id=run_id)
        cache.invalidate(cache.RUNS, cache.ENTRIES, cache.REPORTS)

        logger.info(f"Run deleted: run_id={run_id} released={released} unlinked={unlinked}")
