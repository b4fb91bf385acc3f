"""Plain-text list of pending entries, read by the workflow."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from collector.config import settings
from collector.db.models import Entry
from collector.dependencies import EntryRepoDep
from collector.exceptions import ValidationError
from collector.models import iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/list", tags=["List"])


def format_pending_list(entries: list[Entry]) -> str:
    """Numbered list, one block per entry, blocks separated by a blank line."""
    return "\n".join(
        f"{idx}. ID: {e.id}\n   Content: {e.content}\n   Date: {iso(e.created_at)}\n"
        for idx, e in enumerate(entries, start=1)
    )


@router.get("/{type_id}", response_class=PlainTextResponse)
async def pending_list(type_id: UUID, repo: EntryRepoDep, limit: Optional[int] = None):
    """Oldest pending entries of a type as a numbered text list."""
    if limit is None:
        limit = settings.LIST_DEFAULT_LIMIT
    if limit < 1:
        raise ValidationError("limit must be positive")

    entries = await repo.get_pending_for_list(type_id, limit)
    logger.info(f"Pending list served: type_id={type_id} count={len(entries)}")
    return PlainTextResponse(format_pending_list(entries), media_type="text/plain; charset=utf-8")
