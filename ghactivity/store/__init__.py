"""Record store: activity records, issue label state, and duration snapshots."""

from __future__ import annotations

from .errors import ActivityPersistError
from .services import (
    ActivityRecordEnvelope,
    ActivityRecordWriter,
    ActivityWriteResult,
    IssueObservation,
    LabelTransition,
)
from .storage import (
    ActivityRecord,
    Base,
    IssueLabelState,
    IssueState,
    LabelDurationSnapshot,
    LabelStatus,
    TrackedIssue,
    init_storage,
)

__all__ = [
    "ActivityPersistError",
    "ActivityRecord",
    "ActivityRecordEnvelope",
    "ActivityRecordWriter",
    "ActivityWriteResult",
    "Base",
    "IssueLabelState",
    "IssueObservation",
    "IssueState",
    "LabelDurationSnapshot",
    "LabelStatus",
    "LabelTransition",
    "TrackedIssue",
    "init_storage",
]
