"""Time helpers shared by ingestion and analytics."""

from __future__ import annotations

import datetime as dt

from ghactivity.common.errors import TimezoneAwareRequiredError


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp suitable for DB defaults."""
    return dt.datetime.now(dt.UTC)


def ensure_utc(value: dt.datetime, *, field: str) -> dt.datetime:
    """Reject naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        raise TimezoneAwareRequiredError(field)
    return value.astimezone(dt.UTC)

