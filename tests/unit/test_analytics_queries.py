"""Unit tests for ActivityQueryService aggregate counts."""

from __future__ import annotations

import datetime as dt
import typing as typ

import pytest

from ghactivity.analytics import TOTAL_KEY, ActivityQueryService, DateRange
from ghactivity.github import EventCategory
from tests.helpers.records import envelope, seed_records

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

_DAY = dt.datetime(2026, 3, 10, 12, 0, tzinfo=dt.UTC)
_MARCH = DateRange.for_days(dt.date(2026, 3, 1), dt.date(2026, 3, 31))


class TestCountByCategory:
    """Tests for per-category tallies."""

    @pytest.mark.asyncio
    async def test_counts_each_category(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Records are tallied by category across all known actors."""
        await seed_records(
            session_factory,
            [
                envelope(EventCategory.PUSH, created_at=_DAY, commit_count=1),
                envelope(EventCategory.PUSH, actor="hubot", created_at=_DAY),
                envelope(EventCategory.COMMENT, created_at=_DAY),
            ],
        )
        service = ActivityQueryService(session_factory)

        counts = await service.count_by_category(_MARCH)

        assert counts == {"push": 2, "comment": 1}

    @pytest.mark.asyncio
    async def test_filters_by_actor_and_repository(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Actor and repository filters accept a value or a list."""
        await seed_records(
            session_factory,
            [
                envelope(EventCategory.PUSH, actor="a", repository="o/x", created_at=_DAY),
                envelope(EventCategory.PUSH, actor="b", repository="o/x", created_at=_DAY),
                envelope(EventCategory.PUSH, actor="c", repository="o/y", created_at=_DAY),
                envelope(EventCategory.RELEASE, actor="a", repository="o/y", created_at=_DAY),
            ],
        )
        service = ActivityQueryService(session_factory)

        assert await service.count_by_category(_MARCH, "a") == {
            "push": 1,
            "release": 1,
        }
        assert await service.count_by_category(_MARCH, ["a", "b"], "o/x") == {
            "push": 2
        }
        assert await service.count_by_category(_MARCH, None, ["o/y"]) == {
            "push": 1,
            "release": 1,
        }
        assert await service.count_by_category(_MARCH, "nobody") == {}

    @pytest.mark.asyncio
    async def test_split_per_actor_orders_by_total(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Actor Y with five pushes sorts ahead of X with three events."""
        await seed_records(
            session_factory,
            [
                envelope(EventCategory.PUSH, actor="X", created_at=_DAY),
                envelope(EventCategory.PUSH, actor="X", created_at=_DAY),
                envelope(EventCategory.COMMENT, actor="X", created_at=_DAY),
                *(
                    envelope(EventCategory.PUSH, actor="Y", created_at=_DAY)
                    for _ in range(5)
                ),
            ],
        )
        service = ActivityQueryService(session_factory)

        split = await service.count_by_category(_MARCH, split_per_actor=True)

        assert list(split) == ["Y", "X"]
        assert split["Y"] == {"push": 5, TOTAL_KEY: 5}
        assert split["X"] == {"push": 2, "comment": 1, TOTAL_KEY: 3}

    @pytest.mark.asyncio
    async def test_empty_store_yields_empty_counts(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """No records means no categories, split or not."""
        service = ActivityQueryService(session_factory)

        assert await service.count_by_category(_MARCH) == {}
        assert await service.count_by_category(_MARCH, split_per_actor=True) == {}


class TestCountCommits:
    """Tests for commit sums."""

    @pytest.mark.asyncio
    async def test_sums_push_commits(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Pushes of 3, 0 and 5 commits plus a comment sum to 8."""
        await seed_records(
            session_factory,
            [
                envelope(EventCategory.PUSH, created_at=_DAY, commit_count=3),
                envelope(EventCategory.PUSH, created_at=_DAY, commit_count=0),
                envelope(EventCategory.PUSH, created_at=_DAY, commit_count=5),
                envelope(EventCategory.COMMENT, created_at=_DAY),
            ],
        )
        service = ActivityQueryService(session_factory)

        assert await service.count_commits(_MARCH) == 8

    @pytest.mark.asyncio
    async def test_no_records_sum_to_zero(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """An empty window sums to zero rather than None."""
        service = ActivityQueryService(session_factory)
        assert await service.count_commits(_MARCH, "octocat") == 0


class TestCountDistinctRepos:
    """Tests for distinct repository counts."""

    @pytest.mark.asyncio
    async def test_counts_unique_repositories(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Records in A, A, B and C touch three repositories."""
        await seed_records(
            session_factory,
            [
                envelope(EventCategory.PUSH, repository=repo, created_at=_DAY)
                for repo in ("o/a", "o/a", "o/b", "o/c")
            ],
        )
        service = ActivityQueryService(session_factory)

        assert await service.count_distinct_repos(_MARCH) == 3


class TestDateRangeBoundaries:
    """Tests for inclusive range filtering."""

    @pytest.mark.asyncio
    async def test_both_boundaries_are_inclusive(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Records exactly on start or end are counted; outside ones are not."""
        start = dt.datetime(2026, 3, 1, tzinfo=dt.UTC)
        end = dt.datetime(2026, 3, 2, tzinfo=dt.UTC)
        second = dt.timedelta(seconds=1)
        await seed_records(
            session_factory,
            [
                envelope(EventCategory.PUSH, created_at=start - second, commit_count=100),
                envelope(EventCategory.PUSH, created_at=start, commit_count=1),
                envelope(EventCategory.PUSH, created_at=end, commit_count=2),
                envelope(EventCategory.PUSH, created_at=end + second, commit_count=100),
            ],
        )
        service = ActivityQueryService(session_factory)
        window = DateRange(start=start, end=end)

        assert await service.count_commits(window) == 3
        assert await service.count_by_category(window) == {"push": 2}

    @pytest.mark.asyncio
    async def test_whole_day_range_includes_last_moment(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """``for_days`` covers the final second of the end day."""
        late = dt.datetime(2026, 3, 31, 23, 59, 59, tzinfo=dt.UTC)
        await seed_records(
            session_factory,
            [envelope(EventCategory.PUSH, created_at=late, commit_count=4)],
        )
        service = ActivityQueryService(session_factory)

        assert await service.count_commits(_MARCH) == 4
