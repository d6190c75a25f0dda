"""Time-to-label statistics and their recorded history.

The average answers "how long have issues currently carrying this label been
waiting?". Each issue contributes the time elapsed since its latest
``labeled`` transition; issues whose label was removed, or which are known to
be closed, are left out. Snapshots of the average can be recorded on a
schedule and read back as a time series.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from sqlalchemy import and_, func, or_, select

from ghactivity.common.time import ensure_utc, utcnow
from ghactivity.store import (
    IssueLabelState,
    IssueState,
    LabelDurationSnapshot,
    LabelStatus,
    TrackedIssue,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
    from sqlalchemy.orm import InstrumentedAttribute
    from sqlalchemy.sql.elements import ColumnElement

    from .filters import DateRange

    type SessionFactory = async_sessionmaker[AsyncSession]


class InvalidTrackedLabelError(ValueError):
    """Raised when a tracked label slug is not ``owner/name#label``."""

    def __init__(self, slug: str) -> None:
        """Record the offending slug."""
        self.slug = slug
        super().__init__(f"tracked label must be owner/name#label, got {slug!r}")


@dc.dataclass(frozen=True, slots=True)
class TrackedLabel:
    """A repository label whose time-to-label is recorded periodically."""

    repository: str
    label: str

    @classmethod
    def parse(cls, slug: str) -> TrackedLabel:
        """Parse ``owner/name#label``; the label may itself contain ``#``."""
        repository, sep, label = slug.strip().partition("#")
        owner, slash, name = repository.partition("/")
        if not (sep and slash and owner and name and label.strip()):
            raise InvalidTrackedLabelError(slug)
        return cls(repository=repository, label=label.strip())

    @property
    def slug(self) -> str:
        """Return the ``owner/name#label`` form."""
        return f"{self.repository}#{self.label}"


@dc.dataclass(frozen=True, slots=True)
class LabelDurationResult:
    """Average time-to-label for one repository label.

    Attributes
    ----------
    average_seconds
        Integer-truncated mean of ``per_issue``, or ``None`` when no issue
        currently carries the label.
    per_issue
        Seconds since the label was applied, keyed by ``owner/name#number``.

    """

    average_seconds: int | None
    per_issue: dict[str, int] = dc.field(default_factory=dict)

    @property
    def is_defined(self) -> bool:
        """Return True when at least one issue qualified."""
        return self.average_seconds is not None


@dc.dataclass(frozen=True, slots=True)
class LabelDurationPoint:
    """One recorded average in a label's duration history."""

    duration_seconds: int
    recorded_at: dt.datetime
    detail: dict[str, int]


def _average(per_issue: dict[str, int]) -> int | None:
    if not per_issue:
        return None
    return sum(per_issue.values()) // len(per_issue)


def _same_repository(
    column: InstrumentedAttribute[str], repo: str
) -> ColumnElement[bool]:
    return func.lower(column) == repo.lower()


class LabelDurationService:
    """Compute, record, and read back time-to-label averages."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Create service bound to an async session factory."""
        self._session_factory = session_factory

    async def average_label_duration(
        self,
        repo: str,
        label: str,
        *,
        now: dt.datetime | None = None,
    ) -> LabelDurationResult:
        """Return the mean time since ``label`` was applied to open issues.

        Parameters
        ----------
        repo
            Repository as ``owner/name``; matched case-insensitively.
        label
            Label name; matched case-insensitively.
        now
            Reference instant; defaults to the current UTC time.

        Returns
        -------
        LabelDurationResult
            The truncated mean and per-issue elapsed seconds. The mean is
            ``None`` and the mapping empty when nothing qualifies.

        """
        reference = ensure_utc(now, field="now") if now is not None else utcnow()
        stmt = (
            select(
                IssueLabelState.repository,
                IssueLabelState.issue_number,
                IssueLabelState.changed_at,
            )
            .outerjoin(
                TrackedIssue,
                and_(
                    TrackedIssue.repository == IssueLabelState.repository,
                    TrackedIssue.issue_number == IssueLabelState.issue_number,
                ),
            )
            .where(
                _same_repository(IssueLabelState.repository, repo),
                func.lower(IssueLabelState.label) == label.lower(),
                IssueLabelState.status == LabelStatus.LABELED.value,
                or_(
                    TrackedIssue.id.is_(None),
                    TrackedIssue.state != IssueState.CLOSED.value,
                ),
            )
            .order_by(IssueLabelState.issue_number)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()

        per_issue = {
            f"{repository}#{number}": max(
                int((reference - changed_at).total_seconds()), 0
            )
            for repository, number, changed_at in rows
        }
        return LabelDurationResult(
            average_seconds=_average(per_issue), per_issue=per_issue
        )

    async def record_label_duration(
        self,
        repo: str,
        label: str,
        *,
        now: dt.datetime | None = None,
    ) -> LabelDurationSnapshot | None:
        """Compute the current average and append it to the history.

        Nothing is recorded when no issue qualifies.
        """
        recorded_at = ensure_utc(now, field="now") if now is not None else utcnow()
        result = await self.average_label_duration(repo, label, now=recorded_at)
        if not result.is_defined:
            return None

        snapshot = LabelDurationSnapshot(
            repository=repo,
            label=label,
            duration_seconds=result.average_seconds,
            recorded_at=recorded_at,
            detail=dict(result.per_issue),
        )
        async with self._session_factory() as session:
            session.add(snapshot)
            await session.commit()
            await session.refresh(snapshot)
        return snapshot

    async def fetch_label_duration_history(
        self,
        repo: str,
        label: str,
        date_range: DateRange | None = None,
    ) -> list[LabelDurationPoint]:
        """Return recorded averages for the label, oldest first."""
        stmt = select(LabelDurationSnapshot).where(
            _same_repository(LabelDurationSnapshot.repository, repo),
            func.lower(LabelDurationSnapshot.label) == label.lower(),
        )
        if date_range is not None:
            stmt = stmt.where(
                LabelDurationSnapshot.recorded_at >= date_range.start,
                LabelDurationSnapshot.recorded_at <= date_range.end,
            )
        stmt = stmt.order_by(
            LabelDurationSnapshot.recorded_at, LabelDurationSnapshot.id
        )

        async with self._session_factory() as session:
            snapshots = (await session.scalars(stmt)).all()

        return [
            LabelDurationPoint(
                duration_seconds=snapshot.duration_seconds,
                recorded_at=snapshot.recorded_at,
                detail=dict(snapshot.detail or {}),
            )
            for snapshot in snapshots
        ]
