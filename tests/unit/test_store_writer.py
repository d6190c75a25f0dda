"""Unit tests for ActivityRecordWriter and issue state tracking."""

from __future__ import annotations

import dataclasses
import datetime as dt
import typing as typ

import pytest
from sqlalchemy import func, select

from ghactivity.common.errors import TimezoneAwareRequiredError
from ghactivity.github import EventCategory
from ghactivity.store import (
    ActivityRecord,
    ActivityRecordEnvelope,
    ActivityRecordWriter,
    IssueLabelState,
    IssueObservation,
    IssueState,
    LabelStatus,
    LabelTransition,
    TrackedIssue,
)
from tests.helpers.records import envelope

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

_T0 = dt.datetime(2026, 3, 1, 9, 0, tzinfo=dt.UTC)


def _label_envelope(
    external_id: str,
    status: LabelStatus,
    created_at: dt.datetime,
    label: str = "needs-triage",
) -> ActivityRecordEnvelope:
    base = envelope(
        EventCategory.ISSUE_TOUCHED,
        created_at=created_at,
        external_id=external_id,
    )
    return dataclasses.replace(
        base,
        raw_type="IssuesEvent",
        label_transition=LabelTransition(issue_number=4, label=label, status=status),
        issue_observation=IssueObservation(issue_number=4, state=IssueState.OPEN),
    )


def _issue_envelope(
    external_id: str, state: IssueState, created_at: dt.datetime
) -> ActivityRecordEnvelope:
    base = envelope(
        EventCategory.ISSUE_CLOSED
        if state is IssueState.CLOSED
        else EventCategory.ISSUE_TOUCHED,
        created_at=created_at,
        external_id=external_id,
    )
    return dataclasses.replace(
        base,
        raw_type="IssuesEvent",
        issue_observation=IssueObservation(issue_number=4, state=state),
    )


async def _label_states(
    session_factory: async_sessionmaker[AsyncSession],
) -> list[IssueLabelState]:
    async with session_factory() as session:
        return list((await session.scalars(select(IssueLabelState))).all())


class TestActivityRecordWriter:
    """Tests for append-only record writes."""

    @pytest.mark.asyncio
    async def test_write_persists_record(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A new envelope is stored with its timestamp in UTC."""
        writer = ActivityRecordWriter(session_factory)
        item = envelope(EventCategory.PUSH, created_at=_T0, commit_count=3)

        outcome = await writer.write(item)

        assert outcome.created is True
        assert outcome.record.external_id == item.external_id
        assert outcome.record.commit_count == 3
        assert outcome.record.created_at == _T0
        assert outcome.record.created_at.tzinfo is not None
        assert await writer.exists(item.external_id)

    @pytest.mark.asyncio
    async def test_duplicate_write_is_noop(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Writing the same external ID twice leaves one record."""
        writer = ActivityRecordWriter(session_factory)
        item = envelope(EventCategory.COMMENT, created_at=_T0, external_id="dup-1")

        first = await writer.write(item)
        second = await writer.write(item)

        assert first.created is True
        assert second.created is False
        assert second.record.id == first.record.id
        async with session_factory() as session:
            count = await session.scalar(select(func.count(ActivityRecord.id)))
        assert count == 1

    @pytest.mark.asyncio
    async def test_naive_timestamp_is_rejected(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Naive creation timestamps never reach the database."""
        writer = ActivityRecordWriter(session_factory)
        item = envelope(EventCategory.PUSH, created_at=dt.datetime(2026, 3, 1, 9, 0))  # noqa: DTZ001

        with pytest.raises(TimezoneAwareRequiredError):
            await writer.write(item)

    @pytest.mark.asyncio
    async def test_exists_is_false_for_unknown_id(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Unknown IDs are reported as absent."""
        writer = ActivityRecordWriter(session_factory)
        assert await writer.exists("never-seen") is False


class TestIssueState:
    """Tests for label transitions and tracked issue state."""

    @pytest.mark.asyncio
    async def test_label_transition_creates_state(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """The first labeled event creates the label state."""
        writer = ActivityRecordWriter(session_factory)

        await writer.write(_label_envelope("l-1", LabelStatus.LABELED, _T0))

        states = await _label_states(session_factory)
        assert len(states) == 1
        assert states[0].status == "labeled"
        assert states[0].changed_at == _T0
        async with session_factory() as session:
            issue = await session.scalar(select(TrackedIssue))
        assert issue is not None
        assert issue.state == "open"

    @pytest.mark.asyncio
    async def test_newer_transition_overwrites(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A later unlabeled event replaces an earlier labeled one."""
        writer = ActivityRecordWriter(session_factory)
        later = _T0 + dt.timedelta(hours=2)

        await writer.write(_label_envelope("l-1", LabelStatus.LABELED, _T0))
        await writer.write(_label_envelope("l-2", LabelStatus.UNLABELED, later))

        states = await _label_states(session_factory)
        assert [(s.status, s.changed_at) for s in states] == [("unlabeled", later)]

    @pytest.mark.asyncio
    async def test_older_transition_does_not_roll_back(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Events processed newest first keep the newest state."""
        writer = ActivityRecordWriter(session_factory)
        later = _T0 + dt.timedelta(hours=2)

        await writer.write(_label_envelope("l-2", LabelStatus.LABELED, later))
        await writer.write(_label_envelope("l-1", LabelStatus.UNLABELED, _T0))

        states = await _label_states(session_factory)
        assert [(s.status, s.changed_at) for s in states] == [("labeled", later)]

    @pytest.mark.asyncio
    async def test_duplicate_delivery_does_not_replay_transition(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A re-delivered old event cannot touch label state."""
        writer = ActivityRecordWriter(session_factory)
        later = _T0 + dt.timedelta(hours=2)

        await writer.write(_label_envelope("l-1", LabelStatus.UNLABELED, later))
        outcome = await writer.write(
            _label_envelope("l-1", LabelStatus.LABELED, later)
        )

        assert outcome.created is False
        states = await _label_states(session_factory)
        assert [s.status for s in states] == ["unlabeled"]

    @pytest.mark.asyncio
    async def test_same_second_transitions_keep_the_later_event(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Within one second the higher event ID is the newer transition."""
        writer = ActivityRecordWriter(session_factory)

        # Delivered newest first, as the events API returns them.
        await writer.write(_label_envelope("2", LabelStatus.UNLABELED, _T0))
        await writer.write(_label_envelope("1", LabelStatus.LABELED, _T0))

        states = await _label_states(session_factory)
        assert [(s.status, s.event_id) for s in states] == [("unlabeled", "2")]

    @pytest.mark.asyncio
    async def test_same_second_transition_with_higher_id_overwrites(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A later event in the same second still replaces the stored state."""
        writer = ActivityRecordWriter(session_factory)

        await writer.write(_label_envelope("1", LabelStatus.LABELED, _T0))
        await writer.write(_label_envelope("2", LabelStatus.UNLABELED, _T0))

        states = await _label_states(session_factory)
        assert [(s.status, s.event_id) for s in states] == [("unlabeled", "2")]

    @pytest.mark.asyncio
    async def test_same_second_issue_observations_keep_the_later_event(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """An issue reopened then closed in one second stays closed."""
        writer = ActivityRecordWriter(session_factory)

        await writer.write(_issue_envelope("11", IssueState.CLOSED, _T0))
        await writer.write(_issue_envelope("10", IssueState.OPEN, _T0))

        async with session_factory() as session:
            issues = list((await session.scalars(select(TrackedIssue))).all())
        assert [(i.state, i.event_id) for i in issues] == [("closed", "11")]

    @pytest.mark.asyncio
    async def test_label_names_are_stored_case_insensitively(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Differently cased names share one lower-cased label state."""
        writer = ActivityRecordWriter(session_factory)
        later = _T0 + dt.timedelta(hours=1)

        await writer.write(_label_envelope("1", LabelStatus.LABELED, _T0, "Bug"))
        await writer.write(_label_envelope("2", LabelStatus.UNLABELED, later, "bug"))

        states = await _label_states(session_factory)
        assert [(s.label, s.status) for s in states] == [("bug", "unlabeled")]
