"""Repository module for database operations."""

from .base import BaseRepository
from .entries import EntryRepository
from .reports import ReportRepository
from .research import DigestRepository, ResearchRepository
from .runs import RunRepository
from .types import TypeRepository

__all__ = [
    "BaseRepository",
    "DigestRepository",
    "EntryRepository",
    "ReportRepository",
    "ResearchRepository",
    "RunRepository",
    "TypeRepository",
]
