"""Event categories and the fixed (type, action) mapping table."""

from __future__ import annotations

import enum


class EventCategory(enum.StrEnum):
    """Display categories derived from GitHub event type and action."""

    ISSUE_CLOSED = "issue-closed"
    ISSUE_OPENED = "issue-opened"
    ISSUE_TOUCHED = "issue-touched"
    COMMENT = "comment"
    PR_REVIEW = "pr-review"
    PUSH = "push"
    TAG_CREATED = "tag-created"
    RELEASE = "release"
    UNKNOWN = "unknown"


CATEGORY_LABELS: dict[EventCategory, str] = {
    EventCategory.ISSUE_CLOSED: "Issue Closed",
    EventCategory.ISSUE_OPENED: "Issue Opened",
    EventCategory.ISSUE_TOUCHED: "Issue touched",
    EventCategory.COMMENT: "Comment",
    EventCategory.PR_REVIEW: "Reviewed a PR",
    EventCategory.PUSH: "Pushed a branch",
    EventCategory.TAG_CREATED: "Created a tag",
    EventCategory.RELEASE: "Created a release",
    EventCategory.UNKNOWN: "Did something",
}

# ``None`` as the action matches any action for that type.
CATEGORY_TABLE: dict[tuple[str, str | None], EventCategory] = {
    ("IssuesEvent", "closed"): EventCategory.ISSUE_CLOSED,
    ("IssuesEvent", "opened"): EventCategory.ISSUE_OPENED,
    ("IssuesEvent", "created"): EventCategory.ISSUE_OPENED,
    ("IssuesEvent", None): EventCategory.ISSUE_TOUCHED,
    ("IssueCommentEvent", None): EventCategory.COMMENT,
    ("PullRequestReviewCommentEvent", None): EventCategory.PR_REVIEW,
    ("PullRequestReviewEvent", None): EventCategory.PR_REVIEW,
    ("PushEvent", None): EventCategory.PUSH,
    ("CreateEvent", None): EventCategory.TAG_CREATED,
    ("ReleaseEvent", None): EventCategory.RELEASE,
}


def derive_category(raw_type: str | None, action: str | None) -> EventCategory:
    """Map a GitHub event type and payload action to an :class:`EventCategory`.

    An exact ``(type, action)`` entry wins over the type's wildcard entry;
    anything absent from the table is :attr:`EventCategory.UNKNOWN`.
    """
    if not raw_type:
        return EventCategory.UNKNOWN
    if action:
        exact = CATEGORY_TABLE.get((raw_type, action))
        if exact is not None:
            return exact
    return CATEGORY_TABLE.get((raw_type, None), EventCategory.UNKNOWN)


def category_label(category: EventCategory) -> str:
    """Return the human-readable label for ``category``."""
    return CATEGORY_LABELS[category]


def build_summary(category: EventCategory, commit_count: int | None) -> str:
    """Return the display summary, e.g. ``"Pushed a branch, including 3 commits."``."""
    commits = "no" if commit_count is None else str(commit_count)
    return f"{category_label(category)}, including {commits} commits."
