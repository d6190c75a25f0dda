"""Typed shapes for GitHub events API responses.

Two layers are decoded with msgspec:

- :class:`GitHubEvent` is the envelope every event shares (id, type, repo,
  actor, timestamp). An envelope that does not decode cannot be stored.
- :data:`ActivityDetailsUnion` is a tagged union keyed by
  :class:`~ghactivity.github.categories.EventCategory`. Each variant declares
  the payload fields that category uses; a payload that does not fit its
  variant decodes as :class:`UnknownDetails` instead.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003 - msgspec resolves annotations at runtime
import typing as typ

import msgspec

from .categories import EventCategory

AwareDatetime: typ.TypeAlias = typ.Annotated[dt.datetime, msgspec.Meta(tz=True)]


class GitHubRepoRef(msgspec.Struct, frozen=True):
    """Repository reference carried by every event."""

    name: str


class GitHubActorRef(msgspec.Struct, frozen=True):
    """Actor reference; ``login`` is preferred over the display fields."""

    login: str | None = None
    display_login: str | None = None
    name: str | None = None

    @property
    def resolved_name(self) -> str | None:
        """Return the first non-empty identifier for the actor."""
        for candidate in (self.login, self.display_login, self.name):
            if candidate:
                return candidate
        return None


class GitHubEvent(msgspec.Struct, frozen=True):
    """Envelope of one item returned by ``GET /users/{user}/events``."""

    id: str | int
    created_at: AwareDatetime
    repo: GitHubRepoRef
    type: str | None = None
    actor: GitHubActorRef | None = None
    action: str | None = None
    payload: dict[str, typ.Any] | None = None

    @property
    def external_id(self) -> str:
        """Return the event ID as a string."""
        return str(self.id)

    @property
    def resolved_action(self) -> str | None:
        """Return the payload action, falling back to a top-level action."""
        payload_action = (self.payload or {}).get("action")
        if isinstance(payload_action, str) and payload_action:
            return payload_action
        return self.action


class IssueRef(msgspec.Struct, frozen=True, omit_defaults=True):
    """Subset of an issue object."""

    number: int | None = None
    state: str | None = None


class LabelRef(msgspec.Struct, frozen=True, omit_defaults=True):
    """Subset of a label object."""

    name: str | None = None


class PullRequestRef(msgspec.Struct, frozen=True, omit_defaults=True):
    """Subset of a pull request object."""

    number: int | None = None


class ReleaseRef(msgspec.Struct, frozen=True, omit_defaults=True):
    """Subset of a release object."""

    tag_name: str | None = None
    name: str | None = None


class ActivityDetails(
    msgspec.Struct, frozen=True, omit_defaults=True, tag_field="category"
):
    """Base for category-specific payload details."""


class IssueDetails(ActivityDetails, tag=EventCategory.ISSUE_TOUCHED.value):
    """Issue activity other than opening or closing (labels, edits, ...)."""

    action: str | None = None
    issue: IssueRef | None = None
    label: LabelRef | None = None


class IssueOpenedDetails(IssueDetails, tag=EventCategory.ISSUE_OPENED.value):
    """An issue being opened."""


class IssueClosedDetails(IssueDetails, tag=EventCategory.ISSUE_CLOSED.value):
    """An issue being closed."""


class CommentDetails(ActivityDetails, tag=EventCategory.COMMENT.value):
    """A comment on an issue or pull request."""

    action: str | None = None
    issue: IssueRef | None = None


class PullRequestReviewDetails(ActivityDetails, tag=EventCategory.PR_REVIEW.value):
    """A pull request review or review comment."""

    action: str | None = None
    pull_request: PullRequestRef | None = None


class PushDetails(ActivityDetails, tag=EventCategory.PUSH.value):
    """A branch push; ``distinct_size`` counts commits new to the repository."""

    distinct_size: int | None = None
    size: int | None = None
    ref: str | None = None


class TagCreatedDetails(ActivityDetails, tag=EventCategory.TAG_CREATED.value):
    """A branch or tag being created."""

    ref: str | None = None
    ref_type: str | None = None


class ReleaseDetails(ActivityDetails, tag=EventCategory.RELEASE.value):
    """A release being published or edited."""

    action: str | None = None
    release: ReleaseRef | None = None


class UnknownDetails(ActivityDetails, tag=EventCategory.UNKNOWN.value):
    """Fallback for unmapped event types and undecodable payloads."""


ActivityDetailsUnion: typ.TypeAlias = (
    IssueDetails
    | IssueOpenedDetails
    | IssueClosedDetails
    | CommentDetails
    | PullRequestReviewDetails
    | PushDetails
    | TagCreatedDetails
    | ReleaseDetails
    | UnknownDetails
)

DETAILS_BY_CATEGORY: dict[EventCategory, type[ActivityDetails]] = {
    EventCategory.ISSUE_TOUCHED: IssueDetails,
    EventCategory.ISSUE_OPENED: IssueOpenedDetails,
    EventCategory.ISSUE_CLOSED: IssueClosedDetails,
    EventCategory.COMMENT: CommentDetails,
    EventCategory.PR_REVIEW: PullRequestReviewDetails,
    EventCategory.PUSH: PushDetails,
    EventCategory.TAG_CREATED: TagCreatedDetails,
    EventCategory.RELEASE: ReleaseDetails,
    EventCategory.UNKNOWN: UnknownDetails,
}


def details_category(details: ActivityDetails) -> EventCategory:
    """Return the category tag a details variant is registered under."""
    return EventCategory(details.__struct_config__.tag)


def decode_details(
    category: EventCategory, payload: dict[str, typ.Any] | None
) -> ActivityDetails:
    """Decode ``payload`` into the variant for ``category``.

    Payloads that fail validation for their variant decode as
    :class:`UnknownDetails`.
    """
    if category is EventCategory.UNKNOWN:
        return UnknownDetails()
    fields = {k: v for k, v in (payload or {}).items() if k != "category"}
    try:
        return msgspec.convert(fields, type=DETAILS_BY_CATEGORY[category])
    except msgspec.ValidationError:
        return UnknownDetails()


def load_details(stored: dict[str, typ.Any]) -> ActivityDetailsUnion:
    """Decode details previously stored with :func:`dump_details`."""
    return msgspec.convert(stored, type=ActivityDetailsUnion)


def dump_details(details: ActivityDetails) -> dict[str, typ.Any]:
    """Return the JSON-compatible form of ``details`` including its tag."""
    return typ.cast("dict[str, typ.Any]", msgspec.to_builtins(details))
