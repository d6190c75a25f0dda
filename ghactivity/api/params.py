"""Query-string parsing shared by the stats and labels resources."""

from __future__ import annotations

import datetime as dt
import typing as typ

from ghactivity.analytics import DateRange, InvalidDateRangeError
from ghactivity.api.errors import InvalidInputError

if typ.TYPE_CHECKING:
    from falcon.asgi import Request

_DATE_ONLY_LENGTH = 10


def _parse_bound(raw: str, field: str, *, end_of_day: bool) -> dt.datetime:
    """Parse a date or aware datetime; a bare date covers the whole day."""
    value = raw.strip()
    try:
        if len(value) == _DATE_ONLY_LENGTH:
            day = dt.date.fromisoformat(value)
            moment = dt.time.max if end_of_day else dt.time.min
            return dt.datetime.combine(day, moment, tzinfo=dt.UTC)
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidInputError.not_a_date(field, raw) from exc

    if parsed.tzinfo is None:
        raise InvalidInputError("datetime must include a UTC offset", field=field)
    return parsed


def _build_range(start_raw: str, end_raw: str) -> DateRange:
    start = _parse_bound(start_raw, "start", end_of_day=False)
    end = _parse_bound(end_raw, "end", end_of_day=True)
    try:
        return DateRange(start=start, end=end)
    except InvalidDateRangeError as exc:
        raise InvalidInputError(str(exc), field="end") from exc


def require_date_range(req: Request) -> DateRange:
    """Return the inclusive range named by the ``start`` and ``end`` parameters.

    Raises
    ------
    InvalidInputError
        If either bound is missing, unparsable, naive, or out of order.

    """
    start_raw = req.get_param("start")
    if not start_raw:
        raise InvalidInputError.missing("start")
    end_raw = req.get_param("end")
    if not end_raw:
        raise InvalidInputError.missing("end")
    return _build_range(start_raw, end_raw)


def optional_date_range(req: Request) -> DateRange | None:
    """Return the range when ``start`` or ``end`` is given, else ``None``.

    Supplying only one bound is rejected.
    """
    start_raw = req.get_param("start")
    end_raw = req.get_param("end")
    if not start_raw and not end_raw:
        return None
    if not start_raw:
        raise InvalidInputError.missing("start")
    if not end_raw:
        raise InvalidInputError.missing("end")
    return _build_range(start_raw, end_raw)


def term_filter(req: Request, name: str) -> list[str] | None:
    """Return the values of a repeatable filter parameter, or ``None``."""
    values = req.get_param_as_list(name)
    if not values:
        return None
    return [value for value in values if value.strip()] or None


def require_label(req: Request) -> str:
    """Return the non-empty ``label`` parameter."""
    label = (req.get_param("label") or "").strip()
    if not label:
        raise InvalidInputError.missing("label")
    return label
