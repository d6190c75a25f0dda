"""Unit tests for event category derivation and display labels."""

from __future__ import annotations

import pytest

from ghactivity.github.categories import (
    CATEGORY_LABELS,
    EventCategory,
    build_summary,
    category_label,
    derive_category,
)


class TestDeriveCategory:
    """Tests for the (type, action) mapping table."""

    @pytest.mark.parametrize(
        ("raw_type", "action", "expected"),
        [
            ("IssuesEvent", "closed", EventCategory.ISSUE_CLOSED),
            ("IssuesEvent", "opened", EventCategory.ISSUE_OPENED),
            ("IssuesEvent", "created", EventCategory.ISSUE_OPENED),
            ("IssuesEvent", "labeled", EventCategory.ISSUE_TOUCHED),
            ("IssuesEvent", "reopened", EventCategory.ISSUE_TOUCHED),
            ("IssuesEvent", None, EventCategory.ISSUE_TOUCHED),
            ("IssueCommentEvent", "created", EventCategory.COMMENT),
            ("IssueCommentEvent", "deleted", EventCategory.COMMENT),
            ("PullRequestReviewCommentEvent", "created", EventCategory.PR_REVIEW),
            ("PullRequestReviewEvent", "submitted", EventCategory.PR_REVIEW),
            ("PushEvent", None, EventCategory.PUSH),
            ("CreateEvent", None, EventCategory.TAG_CREATED),
            ("ReleaseEvent", "published", EventCategory.RELEASE),
        ],
    )
    def test_documented_pairs(
        self, raw_type: str, action: str | None, expected: EventCategory
    ) -> None:
        """Every documented pair maps to its category."""
        assert derive_category(raw_type, action) is expected

    @pytest.mark.parametrize(
        ("raw_type", "action"),
        [
            ("WatchEvent", "started"),
            ("ForkEvent", None),
            ("PullRequestEvent", "opened"),
            ("", "closed"),
            (None, None),
        ],
    )
    def test_unlisted_pairs_are_unknown(
        self, raw_type: str | None, action: str | None
    ) -> None:
        """Anything absent from the table is unknown."""
        assert derive_category(raw_type, action) is EventCategory.UNKNOWN


class TestLabelsAndSummary:
    """Tests for display labels and summaries."""

    def test_every_category_has_a_label(self) -> None:
        """Each category carries a display label."""
        assert set(CATEGORY_LABELS) == set(EventCategory)

    def test_category_labels(self) -> None:
        """Labels match the published wording."""
        assert category_label(EventCategory.PUSH) == "Pushed a branch"
        assert category_label(EventCategory.PR_REVIEW) == "Reviewed a PR"
        assert category_label(EventCategory.UNKNOWN) == "Did something"

    def test_summary_with_commits(self) -> None:
        """Pushes mention their commit count."""
        assert (
            build_summary(EventCategory.PUSH, 3)
            == "Pushed a branch, including 3 commits."
        )

    def test_summary_without_commits(self) -> None:
        """Non-push categories say "no" commits."""
        assert (
            build_summary(EventCategory.COMMENT, None)
            == "Comment, including no commits."
        )
