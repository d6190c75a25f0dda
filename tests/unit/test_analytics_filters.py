"""Unit tests for DateRange and term filter normalisation."""

from __future__ import annotations

import datetime as dt

import pytest

from ghactivity.analytics import (
    DateRange,
    InvalidDateRangeError,
    TrackedLabel,
    normalise_terms,
)
from ghactivity.analytics.filters import term_predicates
from ghactivity.analytics.labels import InvalidTrackedLabelError
from ghactivity.common.errors import TimezoneAwareRequiredError
from ghactivity.store import ActivityRecord


class TestDateRange:
    """Tests for range construction."""

    def test_bounds_are_converted_to_utc(self) -> None:
        """Offset bounds are stored in UTC."""
        plus_two = dt.timezone(dt.timedelta(hours=2))
        window = DateRange(
            start=dt.datetime(2026, 3, 1, 2, 0, tzinfo=plus_two),
            end=dt.datetime(2026, 3, 2, 2, 0, tzinfo=plus_two),
        )
        assert window.start == dt.datetime(2026, 3, 1, 0, 0, tzinfo=dt.UTC)
        assert window.start.utcoffset() == dt.timedelta(0)

    def test_start_equal_to_end_is_allowed(self) -> None:
        """A single instant is a valid range."""
        moment = dt.datetime(2026, 3, 1, tzinfo=dt.UTC)
        window = DateRange(start=moment, end=moment)
        assert window.start == window.end == moment

    def test_end_before_start_is_rejected(self) -> None:
        """Reversed bounds raise a dedicated error."""
        with pytest.raises(InvalidDateRangeError):
            DateRange(
                start=dt.datetime(2026, 3, 2, tzinfo=dt.UTC),
                end=dt.datetime(2026, 3, 1, tzinfo=dt.UTC),
            )

    def test_naive_bounds_are_rejected(self) -> None:
        """Bounds must carry a zone."""
        with pytest.raises(TimezoneAwareRequiredError):
            DateRange(
                start=dt.datetime(2026, 3, 1),  # noqa: DTZ001
                end=dt.datetime(2026, 3, 2, tzinfo=dt.UTC),
            )

    def test_for_days_spans_whole_days(self) -> None:
        """Day ranges run from midnight to the last microsecond."""
        window = DateRange.for_days(dt.date(2026, 3, 1), dt.date(2026, 3, 1))
        assert window.start == dt.datetime(2026, 3, 1, tzinfo=dt.UTC)
        assert window.end == dt.datetime(
            2026, 3, 1, 23, 59, 59, 999999, tzinfo=dt.UTC
        )


class TestNormaliseTerms:
    """Tests for filter normalisation."""

    @pytest.mark.parametrize("value", [None, "", "  ", [], ["", " "]])
    def test_empty_filters_mean_all_known(self, value: object) -> None:
        """Absent or blank filters select every known value."""
        assert normalise_terms(value) is None  # type: ignore[arg-type]

    def test_single_value(self) -> None:
        """A bare string is one term."""
        assert normalise_terms("octocat") == ("octocat",)

    def test_sequence(self) -> None:
        """Lists keep their order and drop blanks."""
        assert normalise_terms(["a", "", "b"]) == ("a", "b")


class TestTermPredicates:
    """Tests for turning filters into WHERE clauses."""

    @pytest.mark.parametrize("value", [None, "", []])
    def test_unfiltered_adds_no_clause(self, value: object) -> None:
        """Selecting every value leaves the column unconstrained."""
        assert term_predicates(ActivityRecord.actor, value) == []  # type: ignore[arg-type]

    def test_terms_become_one_in_clause(self) -> None:
        """Explicit terms restrict the column to those values."""
        (clause,) = term_predicates(ActivityRecord.actor, ["a", "b"])
        compiled = str(clause.compile(compile_kwargs={"literal_binds": True}))
        assert compiled.startswith("activity_records.actor IN")
        assert "'a'" in compiled
        assert "'b'" in compiled


class TestTrackedLabel:
    """Tests for ``owner/name#label`` parsing."""

    def test_parses_slug(self) -> None:
        """Repository and label are split on the first ``#``."""
        tracked = TrackedLabel.parse(" octo/reef#needs triage ")
        assert tracked == TrackedLabel(repository="octo/reef", label="needs triage")
        assert tracked.slug == "octo/reef#needs triage"

    def test_label_may_contain_hash(self) -> None:
        """Only the first ``#`` separates the label."""
        assert TrackedLabel.parse("octo/reef#p#1").label == "p#1"

    @pytest.mark.parametrize("slug", ["octo/reef", "reef#bug", "octo/#bug", "o/r#"])
    def test_rejects_malformed_slugs(self, slug: str) -> None:
        """Slugs missing a part are rejected."""
        with pytest.raises(InvalidTrackedLabelError):
            TrackedLabel.parse(slug)
