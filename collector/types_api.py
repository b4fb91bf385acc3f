"""REST API for entry types."""

import logging

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from collector import cache
from collector.dependencies import DbSession, TypeRepoDep
from collector.exceptions import StoreError, ValidationError
from collector.models import serialize_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/types", tags=["Types"])


class TypeCreate(BaseModel):
    name: str


@router.get("")
async def list_types(repo: TypeRepoDep):
    """All types ordered by name."""
    cached = cache.get_cached(cache.TYPES, "all")
    if cached is not None:
        return cached

    types = await repo.list_by_name()
    data = [serialize_type(t) for t in types]
    cache.cache_result(cache.TYPES, "all", data)
    return data


@router.post("")
async def create_type(body: TypeCreate, repo: TypeRepoDep, session: DbSession):
    """Create a type."""
    name = body.name.strip()
    if not name:
        raise ValidationError("name is required")

    t = await repo.create(name=name)
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"create_type: commit failed name={name!r} error={e}")
        raise StoreError(str(e)) from e
    cache.invalidate(cache.TYPES)

    logger.info(f"Type created: type_id={t.id} name={name!r}")
    return serialize_type(t)
