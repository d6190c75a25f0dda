"""Time-to-label resources.

``GET /labels/{owner}/{name}/average?label=`` recomputes the live average;
``GET /labels/{owner}/{name}/history?label=&start=&end=`` returns the
recorded series for charting.
"""

from __future__ import annotations

import typing as typ

import falcon

from ghactivity.api.params import optional_date_range, require_label

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from ghactivity.analytics import LabelDurationPoint, LabelDurationService

__all__ = ["LabelAverageResource", "LabelHistoryResource"]


def _serialize_point(point: LabelDurationPoint) -> dict[str, typ.Any]:
    return {
        "duration_seconds": point.duration_seconds,
        "recorded_at": point.recorded_at.isoformat(),
        "detail": point.detail,
    }


class LabelAverageResource:
    """Current average time since a label was applied to open issues."""

    def __init__(self, label_service: LabelDurationService) -> None:
        """Bind the resource to the label duration service."""
        self._label_service = label_service

    async def on_get(
        self,
        req: Request,
        resp: Response,
        *,
        owner: str,
        name: str,
    ) -> None:
        """Handle GET requests for the live average.

        ``average_seconds`` is ``null`` when no open issue carries the label.
        """
        label = require_label(req)
        slug = f"{owner}/{name}"
        result = await self._label_service.average_label_duration(slug, label)
        resp.media = {
            "repository": slug,
            "label": label,
            "average_seconds": result.average_seconds,
            "per_issue": result.per_issue,
        }
        resp.status = falcon.HTTP_200


class LabelHistoryResource:
    """Recorded averages for a label, oldest first."""

    def __init__(self, label_service: LabelDurationService) -> None:
        """Bind the resource to the label duration service."""
        self._label_service = label_service

    async def on_get(
        self,
        req: Request,
        resp: Response,
        *,
        owner: str,
        name: str,
    ) -> None:
        """Handle GET requests for the recorded series."""
        label = require_label(req)
        date_range = optional_date_range(req)
        slug = f"{owner}/{name}"
        points = await self._label_service.fetch_label_duration_history(
            slug, label, date_range
        )
        resp.media = {
            "repository": slug,
            "label": label,
            "points": [_serialize_point(point) for point in points],
        }
        resp.status = falcon.HTTP_200
