"""Aggregate counts over stored activity records.

Usage
-----
>>> import datetime as dt
>>> from ghactivity.analytics import ActivityQueryService, DateRange
>>> service = ActivityQueryService(session_factory)
>>> counts = await service.count_by_category(
...     DateRange.for_days(dt.date(2026, 3, 1), dt.date(2026, 3, 31)),
...     actor_filter="octocat",
... )

"""

from __future__ import annotations

import typing as typ

from sqlalchemy import distinct, func, select

from ghactivity.store import ActivityRecord

from .filters import term_predicates

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
    from sqlalchemy.sql.elements import ColumnElement

    from .filters import DateRange, TermFilter

    type SessionFactory = async_sessionmaker[AsyncSession]

type CategoryCounts = dict[str, int]
type ActorCategoryCounts = dict[str, CategoryCounts]

TOTAL_KEY = "total"


def _in_range(date_range: DateRange) -> list[ColumnElement[bool]]:
    return [
        ActivityRecord.created_at >= date_range.start,
        ActivityRecord.created_at <= date_range.end,
    ]


def _ordered_counts(counts: CategoryCounts) -> CategoryCounts:
    """Return category counts with the most frequent categories first."""
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def _split_by_actor(rows: list[tuple[str, str, int]]) -> ActorCategoryCounts:
    """Group ``(actor, category, count)`` rows and order actors by total."""
    per_actor: ActorCategoryCounts = {}
    for actor, category, count in rows:
        tallies = per_actor.setdefault(actor, {})
        tallies[category] = tallies.get(category, 0) + count

    for actor, tallies in per_actor.items():
        per_actor[actor] = {
            **_ordered_counts(tallies),
            TOTAL_KEY: sum(tallies.values()),
        }

    return dict(
        sorted(
            per_actor.items(),
            key=lambda item: item[1][TOTAL_KEY],
            reverse=True,
        )
    )


class ActivityQueryService:
    """Read-only aggregate queries over :class:`ActivityRecord` rows."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Create service bound to an async session factory."""
        self._session_factory = session_factory

    async def count_by_category(
        self,
        date_range: DateRange,
        actor_filter: TermFilter = None,
        repo_filter: TermFilter = None,
        *,
        split_per_actor: bool = False,
    ) -> CategoryCounts | ActorCategoryCounts:
        """Tally records per category within ``date_range``.

        Parameters
        ----------
        date_range
            Inclusive window over record creation timestamps.
        actor_filter
            One actor login, several, or ``None`` for every known actor.
        repo_filter
            One ``owner/name`` repository, several, or ``None`` for every
            known repository.
        split_per_actor
            When true, return one category mapping per actor, each carrying
            a ``total`` entry, ordered by descending total.

        Returns
        -------
        CategoryCounts | ActorCategoryCounts
            ``{category: count}``, or ``{actor: {category: count, "total": n}}``
            when split per actor. Categories with no records are absent.

        """
        async with self._session_factory() as session:
            stmt = (
                select(
                    ActivityRecord.actor,
                    ActivityRecord.category,
                    func.count(ActivityRecord.id),
                )
                .where(
                    *_in_range(date_range),
                    *term_predicates(ActivityRecord.actor, actor_filter),
                    *term_predicates(ActivityRecord.repository, repo_filter),
                )
                .group_by(ActivityRecord.actor, ActivityRecord.category)
            )
            rows = [
                (actor, category, int(count))
                for actor, category, count in (await session.execute(stmt)).all()
            ]

        if split_per_actor:
            return _split_by_actor(rows)

        counts: CategoryCounts = {}
        for _actor, category, count in rows:
            counts[category] = counts.get(category, 0) + count
        return _ordered_counts(counts)

    async def count_commits(
        self, date_range: DateRange, actor_filter: TermFilter = None
    ) -> int:
        """Sum commit counts of matching records; records without one add zero."""
        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.coalesce(func.sum(ActivityRecord.commit_count), 0)).where(
                    *_in_range(date_range),
                    *term_predicates(ActivityRecord.actor, actor_filter),
                )
            )
        return int(total or 0)

    async def count_distinct_repos(
        self, date_range: DateRange, actor_filter: TermFilter = None
    ) -> int:
        """Count unique repositories among matching records."""
        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count(distinct(ActivityRecord.repository))).where(
                    *_in_range(date_range),
                    *term_predicates(ActivityRecord.actor, actor_filter),
                )
            )
        return int(total or 0)
