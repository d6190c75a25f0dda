"""Turn raw GitHub event objects into activity record envelopes."""

from __future__ import annotations

import typing as typ

import msgspec

from ghactivity.store import (
    ActivityRecordEnvelope,
    IssueObservation,
    IssueState,
    LabelStatus,
    LabelTransition,
)

from .categories import build_summary, derive_category
from .errors import InvalidEventError
from .models import (
    ActivityDetails,
    CommentDetails,
    GitHubEvent,
    IssueClosedDetails,
    IssueDetails,
    IssueOpenedDetails,
    PushDetails,
    decode_details,
    details_category,
    dump_details,
)

# GitHub attributes activity of deleted accounts to this login.
GHOST_ACTOR = "ghost"

_LABEL_ACTIONS = {status.value: status for status in LabelStatus}
_ISSUE_STATES = {state.value: state for state in IssueState}


def _peek_id(raw: dict[str, typ.Any]) -> str | None:
    value = raw.get("id")
    return str(value) if isinstance(value, str | int) else None


def decode_event(raw: object) -> GitHubEvent:
    """Decode the shared event envelope or raise :class:`InvalidEventError`."""
    if not isinstance(raw, dict):
        msg = f"event must be an object, got {type(raw).__name__}"
        raise InvalidEventError(msg)
    try:
        event = msgspec.convert(raw, type=GitHubEvent)
    except msgspec.ValidationError as exc:
        raise InvalidEventError(str(exc), event_id=_peek_id(raw)) from exc

    if not event.external_id.strip():
        raise InvalidEventError("event id is empty")
    if not event.repo.name.strip():
        raise InvalidEventError("repository name is empty", event_id=event.external_id)
    return event


def commit_count_for(details: ActivityDetails) -> int | None:
    """Return the distinct commit count for pushes, ``None`` otherwise."""
    if isinstance(details, PushDetails):
        return max(details.distinct_size or 0, 0)
    return None


def label_transition_for(details: ActivityDetails) -> LabelTransition | None:
    """Return the label add/remove an issue event represents, if any."""
    if not isinstance(details, IssueDetails) or details.action is None:
        return None
    status = _LABEL_ACTIONS.get(details.action)
    if status is None or details.issue is None or details.label is None:
        return None
    if details.issue.number is None or not details.label.name:
        return None
    return LabelTransition(
        issue_number=details.issue.number,
        label=details.label.name,
        status=status,
    )


def issue_observation_for(details: ActivityDetails) -> IssueObservation | None:
    """Return the issue open/closed state an event reveals, if any."""
    if not isinstance(details, IssueDetails | CommentDetails):
        return None
    issue = details.issue
    if issue is None or issue.number is None:
        return None

    state = _ISSUE_STATES.get((issue.state or "").lower())
    if state is None:
        if isinstance(details, IssueClosedDetails):
            state = IssueState.CLOSED
        elif isinstance(details, IssueOpenedDetails):
            state = IssueState.OPEN
        else:
            return None
    return IssueObservation(issue_number=issue.number, state=state)


def normalise_event(raw: object) -> ActivityRecordEnvelope:
    """Build the record envelope for one raw event.

    Raises
    ------
    InvalidEventError
        If the envelope lacks an id, repository, or timezone-aware timestamp.

    """
    event = decode_event(raw)
    category = derive_category(event.type, event.resolved_action)
    details = decode_details(category, event.payload)
    # An undecodable payload has fallen back to the unknown variant.
    category = details_category(details)
    commit_count = commit_count_for(details)
    actor = event.actor.resolved_name if event.actor is not None else None

    return ActivityRecordEnvelope(
        external_id=event.external_id,
        category=category.value,
        raw_type=event.type or "",
        repository=event.repo.name,
        actor=actor or GHOST_ACTOR,
        created_at=event.created_at,
        summary=build_summary(category, commit_count),
        commit_count=commit_count,
        details=dump_details(details),
        label_transition=label_transition_for(details),
        issue_observation=issue_observation_for(details),
    )
