"""Persistence models for activity records and issue label state."""

from __future__ import annotations

import datetime as dt
import enum
import typing as typ

from sqlalchemy import (
    JSON,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from ghactivity.common.errors import TimezoneAwareRequiredError
from ghactivity.common.time import utcnow

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class LabelStatus(enum.StrEnum):
    """Two-state machine tracked per (repository, issue, label)."""

    LABELED = "labeled"
    UNLABELED = "unlabeled"


class IssueState(enum.StrEnum):
    """Issue open/closed state as last observed in an event payload."""

    OPEN = "open"
    CLOSED = "closed"


class Base(DeclarativeBase):
    """Declarative base for all ghactivity tables."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError.for_created_at()
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class ActivityRecord(Base):
    """One normalised GitHub event; written once and never updated."""

    __tablename__ = "activity_records"
    __table_args__ = (
        UniqueConstraint("external_id", name="uq_activity_records_external_id"),
        Index("ix_activity_records_category", "category"),
        Index("ix_activity_records_repository", "repository"),
        Index("ix_activity_records_actor", "actor"),
        Index("ix_activity_records_created_at", "created_at"),
        Index("ix_activity_records_actor_time", "actor", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    external_id: Mapped[str] = mapped_column(String(64))
    category: Mapped[str] = mapped_column(String(32))
    raw_type: Mapped[str] = mapped_column(String(64))
    repository: Mapped[str] = mapped_column(String(255))
    actor: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    ingested_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    commit_count: Mapped[int | None] = mapped_column(Integer, default=None)
    summary: Mapped[str] = mapped_column(Text())
    details: Mapped[dict[str, typ.Any]] = mapped_column(JSON, default=dict)


class IssueLabelState(Base):
    """Latest label transition for a single issue and label."""

    __tablename__ = "issue_label_states"
    __table_args__ = (
        UniqueConstraint(
            "repository", "issue_number", "label", name="uq_issue_label_state_key"
        ),
        Index("ix_issue_label_states_repo_label", "repository", "label"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository: Mapped[str] = mapped_column(String(255))
    issue_number: Mapped[int] = mapped_column(Integer)
    label: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(16))
    changed_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    event_id: Mapped[str | None] = mapped_column(String(64), default=None)


class TrackedIssue(Base):
    """Latest observed open/closed state of an issue."""

    __tablename__ = "tracked_issues"
    __table_args__ = (
        UniqueConstraint("repository", "issue_number", name="uq_tracked_issue_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository: Mapped[str] = mapped_column(String(255))
    issue_number: Mapped[int] = mapped_column(Integer)
    state: Mapped[str] = mapped_column(String(16))
    observed_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    event_id: Mapped[str | None] = mapped_column(String(64), default=None)


class LabelDurationSnapshot(Base):
    """A recorded average time-to-label computation for one repository label."""

    __tablename__ = "label_duration_snapshots"
    __table_args__ = (
        Index(
            "ix_label_duration_snapshots_key_time",
            "repository",
            "label",
            "recorded_at",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository: Mapped[str] = mapped_column(String(255))
    label: Mapped[str] = mapped_column(String(255))
    duration_seconds: Mapped[int] = mapped_column(Integer)
    recorded_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    detail: Mapped[dict[str, int]] = mapped_column(JSON, default=dict)


async def init_storage(engine: AsyncEngine) -> None:
    """Create all tables registered with Base if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
