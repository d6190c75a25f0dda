"""Date ranges and term filters shared by the aggregate queries."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt
import typing as typ

from ghactivity.common.time import ensure_utc

if typ.TYPE_CHECKING:
    from sqlalchemy.orm import InstrumentedAttribute
    from sqlalchemy.sql.elements import ColumnElement

type TermFilter = str | cabc.Sequence[str] | None


class InvalidDateRangeError(ValueError):
    """Raised when a date range ends before it starts."""

    def __init__(self, start: dt.datetime, end: dt.datetime) -> None:
        """Record both bounds in the message."""
        self.start = start
        self.end = end
        super().__init__(
            "date range end must not be before start, got "
            f"start={start.isoformat()}, end={end.isoformat()}"
        )


@dc.dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive ``[start, end]`` window over record creation timestamps.

    Attributes
    ----------
    start
        First instant included in the range. Must be timezone aware.
    end
        Last instant included in the range. Must be timezone aware and not
        before ``start``.

    """

    start: dt.datetime
    end: dt.datetime

    def __post_init__(self) -> None:
        """Normalise both bounds to UTC and validate their order."""
        start = ensure_utc(self.start, field="start")
        end = ensure_utc(self.end, field="end")
        if end < start:
            raise InvalidDateRangeError(start, end)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def for_days(
        cls,
        first_day: dt.date,
        last_day: dt.date,
        *,
        tz: dt.tzinfo = dt.UTC,
    ) -> DateRange:
        """Return the range covering every instant of both calendar days."""
        return cls(
            start=dt.datetime.combine(first_day, dt.time.min, tzinfo=tz),
            end=dt.datetime.combine(last_day, dt.time.max, tzinfo=tz),
        )


def normalise_terms(value: TermFilter) -> tuple[str, ...] | None:
    """Return the explicit terms in ``value`` or ``None`` for "all known values".

    A bare string is one term; an empty string or empty sequence means no
    filter was given.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return (value,) if value.strip() else None
    terms = tuple(term for term in value if term.strip())
    return terms or None


def term_predicates(
    column: InstrumentedAttribute[str], value: TermFilter
) -> list[ColumnElement[bool]]:
    """Return the WHERE clauses restricting ``column`` to the terms in ``value``.

    No clause is returned when the filter selects every known value.
    """
    terms = normalise_terms(value)
    if terms is None:
        return []
    return [column.in_(terms)]
