"""Report creation and finalization.

Creating a report marks its entries processed; marking it done archives
them. Both happen in the same transaction as the report change.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collector import cache
from collector.db.models import Entry, EntryStatus, Report, ReportStatus
from collector.db.repositories.entries import EntryRepository, as_uuids
from collector.db.repositories.reports import ReportRepository
from collector.db.repositories.runs import RunRepository
from collector.exceptions import NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)


class ReportFinalizer:
    """Owns Report state and the entry status changes that follow it."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.reports = ReportRepository(session)
        self.entries = EntryRepository(session)
        self.runs = RunRepository(session)

    async def _commit(self, operation: str, **context) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"{operation}: commit failed {context} error={e}")
            raise StoreError(str(e)) from e

    async def _get_report(self, report_id: UUID) -> Report:
        report = await self.reports.get_by_id(report_id)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        return report

    async def create_report(
        self,
        summary: str,
        markdown_content: str,
        entry_ids: Sequence,
        run_id: Optional[UUID] = None,
        sources: Optional[dict] = None,
    ) -> Report:
        """Insert a processed report and mark its entries processed."""
        try:
            ids = list(dict.fromkeys(as_uuids(entry_ids or [])))
        except ValueError as e:
            raise ValidationError(f"Invalid entry id: {e}") from e
        if not ids:
            raise ValidationError("entry_ids is required")

        if run_id is not None and not await self.runs.exists(run_id):
            raise ValidationError(f"Unknown run_id {run_id}")

        report = await self.reports.create(
            summary=summary or "",
            markdown_content=markdown_content or "",
            entry_ids=[str(i) for i in ids],
            run_id=run_id,
            sources=sources,
            status=ReportStatus.PROCESSED,
        )
        updated = await self.entries.set_status(ids, EntryStatus.PROCESSED)
        await self._commit("create_report", run_id=run_id)
        cache.invalidate(cache.REPORTS, cache.ENTRIES)

        if updated != len(ids):
            logger.warning(
                f"Report references missing entries: report_id={report.id} "
                f"requested={len(ids)} updated={updated}"
            )
        logger.info(f"Report created: report_id={report.id} entries={updated} run_id={run_id}")
        return report

    async def mark_done(self, report_id: UUID) -> Report:
        """Set the report to done and archive every entry it references."""
        report = await self._get_report(report_id)

        report = await self.reports.update(report_id, status=ReportStatus.DONE)
        archived = await self.entries.set_status(report.entry_ids or [], EntryStatus.ARCHIVED)
        await self._commit("mark_done", report_id=report_id)
        cache.invalidate(cache.REPORTS, cache.ENTRIES)

        logger.info(f"Report done: report_id={report_id} archived={archived}")
        return report

    async def delete_report(self, report_id: UUID) -> bool:
        """Delete a report, its entries and, if possible, its run.

        The run goes in a savepoint: if deleting it fails the entries and
        report are still deleted. Returns whether the run was deleted.
        """
        report = await self._get_report(report_id)
        run_id = report.run_id
        entry_ids = list(report.entry_ids or [])

        deleted = await self.entries.delete_many(entry_ids)
        await self.reports.delete(report_id)

        run_deleted = False
        if run_id is not None:
            try:
                async with self.session.begin_nested():
                    await self.entries.release_run(run_id)
                    run_deleted = await self.runs.delete(run_id)
            except SQLAlchemyError as e:
                logger.error(f"Failed to delete run of report: report_id={report_id} run_id={run_id} error={e}")

        await self._commit("delete_report", report_id=report_id)
        cache.invalidate(cache.REPORTS, cache.ENTRIES, cache.RUNS)

        logger.info(
            f"Report deleted: report_id={report_id} entries={deleted} "
            f"run_id={run_id} run_deleted={run_deleted}"
        )
        return run_deleted

    async def list_reports(self, status: Optional[str] = None) -> List[Report]:
        if status and status not in ReportStatus.ALL:
            raise ValidationError(f"Invalid status {status!r}")
        return await self.reports.get_recent(status=status)

    async def get_report(self, report_id: UUID) -> tuple[Report, List[Entry]]:
        """Report plus the entries it references that still exist."""
        report = await self._get_report(report_id)
        entries = await self.entries.get_many(report.entry_ids or [])
        return report, entries
