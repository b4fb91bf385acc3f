"""FastAPI dependencies for database repositories and services."""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from collector.db.connection import get_session
from collector.db.repositories.entries import EntryRepository
from collector.db.repositories.research import DigestRepository, ResearchRepository
from collector.db.repositories.runs import RunRepository
from collector.db.repositories.types import TypeRepository
from collector.services.report_finalizer import ReportFinalizer
from collector.services.run_lifecycle import RunLifecycle


# Session dependency
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in get_session():
        yield session


# Type alias for session dependency
DbSession = Annotated[AsyncSession, Depends(get_db)]


# Repository dependencies
async def get_type_repo(session: DbSession) -> TypeRepository:
    """Get type repository."""
    return TypeRepository(session)


async def get_entry_repo(session: DbSession) -> EntryRepository:
    """Get entry repository."""
    return EntryRepository(session)


async def get_run_repo(session: DbSession) -> RunRepository:
    """Get run repository."""
    return RunRepository(session)


async def get_research_repo(session: DbSession) -> ResearchRepository:
    """Get research queue repository."""
    return ResearchRepository(session)


async def get_digest_repo(session: DbSession) -> DigestRepository:
    """Get digest repository."""
    return DigestRepository(session)


# Service dependencies
async def get_run_lifecycle(session: DbSession) -> RunLifecycle:
    return RunLifecycle(session)


async def get_report_finalizer(session: DbSession) -> ReportFinalizer:
    return ReportFinalizer(session)


# Type aliases for repository dependencies
TypeRepoDep = Annotated[TypeRepository, Depends(get_type_repo)]
EntryRepoDep = Annotated[EntryRepository, Depends(get_entry_repo)]
RunRepoDep = Annotated[RunRepository, Depends(get_run_repo)]
ResearchRepoDep = Annotated[ResearchRepository, Depends(get_research_repo)]
DigestRepoDep = Annotated[DigestRepository, Depends(get_digest_repo)]

# Type aliases for service dependencies
RunLifecycleDep = Annotated[RunLifecycle, Depends(get_run_lifecycle)]
ReportFinalizerDep = Annotated[ReportFinalizer, Depends(get_report_finalizer)]
