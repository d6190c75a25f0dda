"""Services for persisting activity records and issue state."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ghactivity.common.errors import TimezoneAwareRequiredError
from ghactivity.store.errors import ActivityPersistError
from ghactivity.store.storage import (
    ActivityRecord,
    IssueLabelState,
    IssueState,
    LabelStatus,
    TrackedIssue,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@dc.dataclass(frozen=True, slots=True)
class LabelTransition:
    """A label being added to or removed from an issue."""

    issue_number: int
    label: str
    status: LabelStatus


@dc.dataclass(frozen=True, slots=True)
class IssueObservation:
    """The open/closed state an issue had when an event was emitted."""

    issue_number: int
    state: IssueState


@dc.dataclass(frozen=True, slots=True)
class ActivityRecordEnvelope:
    """Structured input for a single activity record write."""

    external_id: str
    category: str
    raw_type: str
    repository: str
    actor: str
    created_at: dt.datetime
    summary: str
    commit_count: int | None = None
    details: dict[str, typ.Any] = dc.field(default_factory=dict)
    label_transition: LabelTransition | None = None
    issue_observation: IssueObservation | None = None


@dc.dataclass(frozen=True, slots=True)
class ActivityWriteResult:
    """Outcome of a write: the stored row and whether this call created it."""

    record: ActivityRecord
    created: bool


class ActivityRecordWriter:
    """Append-only writer for activity records.

    A record and the issue state derived from it are committed in one
    transaction, so a duplicate delivery never replays a label transition.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Store the session factory used for write operations."""
        self._session_factory = session_factory

    async def exists(self, external_id: str) -> bool:
        """Return True when a record with ``external_id`` is already stored."""
        async with self._session_factory() as session:
            found = await session.scalar(
                select(ActivityRecord.id).where(
                    ActivityRecord.external_id == external_id
                )
            )
        return found is not None

    async def write(self, envelope: ActivityRecordEnvelope) -> ActivityWriteResult:
        """Persist ``envelope`` unless its external ID is already present.

        Concurrent writers racing on the same ID are resolved by the unique
        constraint: the loser rolls back and receives the winner's row.
        """
        if envelope.created_at.tzinfo is None:
            raise TimezoneAwareRequiredError.for_created_at()

        async with self._session_factory() as session:
            existing = await self._load_existing(session, envelope.external_id)
            if existing is not None:
                return ActivityWriteResult(record=existing, created=False)

            record = ActivityRecord(
                external_id=envelope.external_id,
                category=envelope.category,
                raw_type=envelope.raw_type,
                repository=envelope.repository,
                actor=envelope.actor,
                created_at=envelope.created_at,
                commit_count=envelope.commit_count,
                summary=envelope.summary,
                details=dict(envelope.details),
            )
            session.add(record)
            try:
                # Autoflush during the state lookups can surface the conflict
                # before commit, so both stay inside the guarded block.
                await self._apply_issue_state(session, envelope)
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                existing = await self._load_existing(session, envelope.external_id)
                if existing is None:
                    raise ActivityPersistError(envelope.external_id) from exc
                return ActivityWriteResult(record=existing, created=False)

            await session.refresh(record)
            return ActivityWriteResult(record=record, created=True)

    @staticmethod
    async def _apply_issue_state(
        session: AsyncSession, envelope: ActivityRecordEnvelope
    ) -> None:
        if envelope.label_transition is not None:
            await _apply_label_transition(
                session, envelope, envelope.label_transition
            )
        if envelope.issue_observation is not None:
            await _apply_issue_observation(
                session, envelope, envelope.issue_observation
            )

    @staticmethod
    async def _load_existing(
        session: AsyncSession, external_id: str
    ) -> ActivityRecord | None:
        return await session.scalar(
            select(ActivityRecord).where(ActivityRecord.external_id == external_id)
        )


def _event_sequence(event_id: str | None) -> int:
    """Return the numeric GitHub event ID, or -1 when there is none."""
    if event_id is not None and event_id.isdigit():
        return int(event_id)
    return -1


def _supersedes(
    envelope: ActivityRecordEnvelope,
    stored_at: dt.datetime,
    stored_event_id: str | None,
) -> bool:
    """Return True when ``envelope`` happened after the stored observation.

    Timestamps have one-second resolution, so ties are broken by event ID,
    which GitHub assigns in increasing order. Events arrive newest first; an
    older delivery must not roll state back.
    """
    return (envelope.created_at, _event_sequence(envelope.external_id)) > (
        stored_at,
        _event_sequence(stored_event_id),
    )


async def _apply_label_transition(
    session: AsyncSession,
    envelope: ActivityRecordEnvelope,
    transition: LabelTransition,
) -> None:
    """Record the transition unless a newer one is already stored."""
    # Label names are case-insensitive on GitHub.
    label = transition.label.lower()
    state = await session.scalar(
        select(IssueLabelState).where(
            IssueLabelState.repository == envelope.repository,
            IssueLabelState.issue_number == transition.issue_number,
            IssueLabelState.label == label,
        )
    )
    if state is None:
        session.add(
            IssueLabelState(
                repository=envelope.repository,
                issue_number=transition.issue_number,
                label=label,
                status=transition.status.value,
                changed_at=envelope.created_at,
                event_id=envelope.external_id,
            )
        )
        return
    if _supersedes(envelope, state.changed_at, state.event_id):
        state.status = transition.status.value
        state.changed_at = envelope.created_at
        state.event_id = envelope.external_id


async def _apply_issue_observation(
    session: AsyncSession,
    envelope: ActivityRecordEnvelope,
    observation: IssueObservation,
) -> None:
    """Record the issue state unless a newer observation is already stored."""
    issue = await session.scalar(
        select(TrackedIssue).where(
            TrackedIssue.repository == envelope.repository,
            TrackedIssue.issue_number == observation.issue_number,
        )
    )
    if issue is None:
        session.add(
            TrackedIssue(
                repository=envelope.repository,
                issue_number=observation.issue_number,
                state=observation.state.value,
                observed_at=envelope.created_at,
                event_id=envelope.external_id,
            )
        )
        return
    if _supersedes(envelope, issue.observed_at, issue.event_id):
        issue.state = observation.state.value
        issue.observed_at = envelope.created_at
        issue.event_id = envelope.external_id
