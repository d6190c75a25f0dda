"""Aggregate activity counts over HTTP.

Routes
------
``GET /stats/event-types``
    Records per category, optionally split per actor.
``GET /stats/commits``
    Sum of pushed commits.
``GET /stats/repositories``
    Number of distinct repositories touched.

Every route takes inclusive ``start`` and ``end`` parameters (ISO dates or
offset-qualified datetimes) and a repeatable ``actor`` filter.
"""

from __future__ import annotations

import typing as typ

import falcon

from ghactivity.api.params import require_date_range, term_filter

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from ghactivity.analytics import ActivityQueryService, DateRange

__all__ = [
    "CommitCountResource",
    "EventTypeCountsResource",
    "RepositoryCountResource",
]


def _range_media(date_range: DateRange) -> dict[str, str]:
    return {
        "start": date_range.start.isoformat(),
        "end": date_range.end.isoformat(),
    }


class EventTypeCountsResource:
    """``GET /stats/event-types?start=&end=&actor=&repo=&split=``."""

    def __init__(self, query_service: ActivityQueryService) -> None:
        """Bind the resource to the query service."""
        self._query_service = query_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return category counts for the requested window and filters."""
        date_range = require_date_range(req)
        split = req.get_param_as_bool("split", default=False)
        counts = await self._query_service.count_by_category(
            date_range,
            term_filter(req, "actor"),
            term_filter(req, "repo"),
            split_per_actor=bool(split),
        )
        key = "actors" if split else "categories"
        resp.media = {**_range_media(date_range), key: counts}
        resp.status = falcon.HTTP_200


class CommitCountResource:
    """``GET /stats/commits?start=&end=&actor=``."""

    def __init__(self, query_service: ActivityQueryService) -> None:
        """Bind the resource to the query service."""
        self._query_service = query_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return the number of commits pushed in the window."""
        date_range = require_date_range(req)
        commits = await self._query_service.count_commits(
            date_range, term_filter(req, "actor")
        )
        resp.media = {**_range_media(date_range), "commits": commits}
        resp.status = falcon.HTTP_200


class RepositoryCountResource:
    """``GET /stats/repositories?start=&end=&actor=``."""

    def __init__(self, query_service: ActivityQueryService) -> None:
        """Bind the resource to the query service."""
        self._query_service = query_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return the number of distinct repositories with activity."""
        date_range = require_date_range(req)
        repositories = await self._query_service.count_distinct_repos(
            date_range, term_filter(req, "actor")
        )
        resp.media = {**_range_media(date_range), "repositories": repositories}
        resp.status = falcon.HTTP_200
