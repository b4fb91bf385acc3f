"""REST API for reports."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from collector import cache
from collector.dependencies import ReportFinalizerDep
from collector.models import serialize_entry, serialize_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/report", tags=["Reports"])


class ReportCreate(BaseModel):
    summary: str = ""
    markdown_content: str = ""
    entry_ids: list[UUID] = []
    run_id: Optional[UUID] = None
    sources: Optional[dict[str, str]] = None


@router.get("")
async def list_reports(finalizer: ReportFinalizerDep, status: Optional[str] = None):
    """List reports newest first, optionally only one status."""
    key = status or "all"
    cached = cache.get_cached(cache.REPORTS, key)
    if cached is not None:
        return cached

    reports = await finalizer.list_reports(status)
    data = [serialize_report(r) for r in reports]
    cache.cache_result(cache.REPORTS, key, data)
    return data


@router.post("")
async def create_report(body: ReportCreate, finalizer: ReportFinalizerDep):
    """Create a report and mark its entries processed."""
    report = await finalizer.create_report(
        summary=body.summary,
        markdown_content=body.markdown_content,
        entry_ids=body.entry_ids,
        run_id=body.run_id,
        sources=body.sources,
    )
    return {"success": True, "report_id": str(report.id)}


@router.get("/{report_id}")
async def get_report(report_id: UUID, finalizer: ReportFinalizerDep):
    """Get a report with the entries it references."""
    report, entries = await finalizer.get_report(report_id)
    return {
        **serialize_report(report),
        "entries": [serialize_entry(e) for e in entries],
    }


@router.delete("/{report_id}")
async def delete_report(report_id: UUID, finalizer: ReportFinalizerDep):
    """Delete a report together with its entries and run."""
    run_deleted = await finalizer.delete_report(report_id)
    return {"success": True, "run_deleted": run_deleted}


@router.post("/{report_id}/done")
async def mark_done(report_id: UUID, finalizer: ReportFinalizerDep):
    """Mark a report done and archive its entries."""
    await finalizer.mark_done(report_id)
    return {"success": True}
