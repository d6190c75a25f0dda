"""Read-only aggregate queries over stored activity and label state."""

from __future__ import annotations

from .filters import DateRange, InvalidDateRangeError, normalise_terms
from .labels import (
    InvalidTrackedLabelError,
    LabelDurationPoint,
    LabelDurationResult,
    LabelDurationService,
    TrackedLabel,
)
from .queries import TOTAL_KEY, ActivityQueryService

__all__ = [
    "TOTAL_KEY",
    "ActivityQueryService",
    "DateRange",
    "InvalidDateRangeError",
    "InvalidTrackedLabelError",
    "LabelDurationPoint",
    "LabelDurationResult",
    "LabelDurationService",
    "TrackedLabel",
    "normalise_terms",
]
