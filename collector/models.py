"""Response models and ORM serializers for Collector Hub."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from collector.db.models import Digest, Entry, Report, ResearchItem, Run, Type


class HealthStatus(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database_available: bool = Field(..., description="Whether the database answers a trivial query")
    webhook_configured: bool = Field(..., description="Whether a workflow webhook URL is set")


# =============================================================================
# Serialization
# =============================================================================


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_type(t: Type) -> dict:
    return {"id": str(t.id), "name": t.name, "created_at": iso(t.created_at)}


def serialize_entry(e: Entry, run_name: Optional[str] = None, run_status: Optional[str] = None) -> dict:
    """Entry as JSON; run name/status only when the caller joined them."""
    data = {
        "id": str(e.id),
        "type_id": str(e.type_id),
        "content": e.content,
        "status": e.status,
        "run_id": str(e.run_id) if e.run_id else None,
        "created_at": iso(e.created_at),
        "modified_at": iso(e.modified_at),
    }
    if run_name is not None or run_status is not None:
        data["processing_runs"] = {"name": run_name, "status": run_status}
    return data


def serialize_run_entry(e: Entry) -> dict:
    return {
        "id": str(e.id),
        "content": e.content,
        "status": e.status,
        "created_at": iso(e.created_at),
    }


def serialize_run(r: Run) -> dict:
    return {
        "id": str(r.id),
        "name": r.name,
        "type_id": str(r.type_id),
        "limit_count": r.limit_count,
        "status": r.status,
        "created_at": iso(r.created_at),
        "started_at": iso(r.started_at),
        "completed_at": iso(r.completed_at),
        "types": {"name": r.type.name} if r.type else None,
    }


def serialize_report(r: Report) -> dict:
    return {
        "id": str(r.id),
        "summary": r.summary,
        "markdown_content": r.markdown_content,
        "entry_ids": list(r.entry_ids or []),
        "run_id": str(r.run_id) if r.run_id else None,
        "sources": r.sources,
        "status": r.status,
        "created_at": iso(r.created_at),
        "processing_runs": {"name": r.run.name} if r.run else None,
    }


def serialize_research_item(item: ResearchItem) -> dict:
    return {
        "id": str(item.id),
        "notes": item.notes,
        "urls": list(item.urls or []),
        "type": item.type,
        "status": item.status,
        "created_at": iso(item.created_at),
    }


def serialize_digest(d: Digest) -> dict:
    return {
        "id": str(d.id),
        "markdown_content": d.markdown_content,
        "source_notes": d.source_notes,
        "source_urls": d.source_urls,
        "batch_id": d.batch_id,
        "created_at": iso(d.created_at),
        "processed_at": iso(d.processed_at),
    }
