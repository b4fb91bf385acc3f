"""SQLAlchemy ORM models for Collector Hub."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class EntryStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    ARCHIVED = "archived"

    ALL = (PENDING, PROCESSING, PROCESSED, ARCHIVED)


class RunStatus:
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL = (CREATED, RUNNING, COMPLETED, FAILED)


# Bounds enforced by ck_processing_runs_limit_count; settings can only narrow them
RUN_LIMIT_FLOOR = 1
RUN_LIMIT_CEILING = 50


class ReportStatus:
    PROCESSED = "processed"
    DONE = "done"

    ALL = (PROCESSED, DONE)


# =============================================================================
# Collector
# =============================================================================

class Type(Base):
    """Entry classification (e.g. "papers", "tools")."""
    __tablename__ = "types"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.current_timestamp()
    )

    # Relationships
    entries: Mapped[List["Entry"]] = relationship(back_populates="type")
    runs: Mapped[List["Run"]] = relationship(back_populates="type")


class Entry(Base):
    """Content item submitted for processing."""
    __tablename__ = "entries"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    type_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("types.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=EntryStatus.PENDING, index=True
    )  # pending, processing, processed, archived
    run_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("processing_runs.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.current_timestamp()
    )
    modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
    )

    # Relationships
    type: Mapped["Type"] = relationship(back_populates="entries")
    run: Mapped[Optional["Run"]] = relationship(back_populates="entries")


class Run(Base):
    """Named batch of entries sent to the workflow together."""
    __tablename__ = "processing_runs"
    __table_args__ = (
        CheckConstraint(
            f"limit_count BETWEEN {RUN_LIMIT_FLOOR} AND {RUN_LIMIT_CEILING}",
            name="ck_processing_runs_limit_count",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("types.id"), nullable=False
    )
    limit_count: Mapped[int] = mapped_column(Integer, default=5)
    status: Mapped[str] = mapped_column(
        String(20), default=RunStatus.CREATED
    )  # created, running, completed, failed
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.current_timestamp()
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    type: Mapped["Type"] = relationship(back_populates="runs", lazy="joined")
    entries: Mapped[List["Entry"]] = relationship(back_populates="run")
    reports: Mapped[List["Report"]] = relationship(back_populates="run")


class Report(Base):
    """Workflow output produced from a batch of entries."""
    __tablename__ = "reports"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    markdown_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    entry_ids: Mapped[list] = mapped_column(JSONType, default=list)  # [entry uuid str, ...]
    run_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("processing_runs.id", ondelete="SET NULL"), nullable=True
    )
    sources: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)  # {label: url}
    status: Mapped[str] = mapped_column(
        String(20), default=ReportStatus.PROCESSED, index=True
    )  # processed, done
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.current_timestamp()
    )

    # Relationships
    run: Mapped[Optional["Run"]] = relationship(back_populates="reports", lazy="joined")


# =============================================================================
# Research Hub
# =============================================================================

class ResearchItem(Base):
    """Research note queued for the workflow."""
    __tablename__ = "queue"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    notes: Mapped[str] = mapped_column(Text, nullable=False)
    urls: Mapped[list] = mapped_column(JSONType, default=list)
    type: Mapped[str] = mapped_column(String(20), default="generic")
    status: Mapped[str] = mapped_column(String(20), default="PENDING", index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.current_timestamp()
    )


class Digest(Base):
    """Summary written back by the workflow for a batch of research notes."""
    __tablename__ = "digests"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    markdown_content: Mapped[str] = mapped_column(Text, nullable=False)
    source_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_urls: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    batch_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.current_timestamp()
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
