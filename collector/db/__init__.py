"""Database module for Collector Hub."""

from .connection import get_session, get_engine, async_session_factory
from .models import (
    Base,
    Digest,
    Entry,
    EntryStatus,
    Report,
    ReportStatus,
    ResearchItem,
    Run,
    RunStatus,
    Type,
)

__all__ = [
    "get_session",
    "get_engine",
    "async_session_factory",
    "Base",
    "Digest",
    "Entry",
    "EntryStatus",
    "Report",
    "ReportStatus",
    "ResearchItem",
    "Run",
    "RunStatus",
    "Type",
]
