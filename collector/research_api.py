"""Research Hub API: note intake queue and digest feed."""

import logging
from typing import Literal

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from collector import cache
from collector.config import settings
from collector.dependencies import DbSession, DigestRepoDep, ResearchRepoDep
from collector.models import serialize_digest, serialize_research_item
from collector.url_extractor import extract_urls

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/research", tags=["Research"])


class ResearchCreate(BaseModel):
    notes: str = Field(
        ...,
        min_length=settings.RESEARCH_NOTES_MIN,
        max_length=settings.RESEARCH_NOTES_MAX,
    )
    type: Literal["university", "person", "paper", "generic"]


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("", status_code=201)
async def submit_research(body: dict, repo: ResearchRepoDep, session: DbSession):
    """Validate a research note, extract its URLs and queue it for the workflow."""
    try:
        parsed = ResearchCreate.model_validate(body)
    except PydanticValidationError as e:
        logger.warning(f"Research validation failed: errors={e.error_count()}")
        return _error("Invalid input", 400)

    urls = extract_urls(parsed.notes)

    try:
        item = await repo.create(
            notes=parsed.notes,
            urls=urls,
            type=parsed.type,
            status="PENDING",
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to save research item: error={e}")
        return _error("Failed to save research item", 500)
    cache.invalidate(cache.RESEARCH)

    logger.info(f"Research queued: id={item.id} type={parsed.type} urls_found={len(urls)}")
    return {
        "message": "Research added successfully",
        "data": {"id": str(item.id), "urls_found": len(urls)},
    }


@router.get("")
async def list_queue(repo: ResearchRepoDep, limit: int = 20):
    """Most recently queued research notes."""
    limit = max(1, min(limit, 100))
    items = await repo.get_recent(limit=limit)
    return [serialize_research_item(i) for i in items]


@router.get("/feed")
async def feed(repo: DigestRepoDep):
    """Latest digests written by the workflow."""
    cached = cache.get_cached(cache.RESEARCH, "feed")
    if cached is not None:
        return cached

    digests = await repo.get_feed(limit=settings.FEED_LIMIT)
    data = [serialize_digest(d) for d in digests]
    cache.cache_result(cache.RESEARCH, "feed", data)
    return data
