"""Scheduled ingestion of a user's GitHub activity.

Each run fetches one page of recent events, normalises them, and appends the
ones not already stored. Fetch failures make the run a no-op that the next
scheduled trigger retries; storage failures propagate.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

import httpx

from ghactivity.common.time import utcnow
from ghactivity.store import ActivityRecordWriter

from .errors import GitHubAPIError, GitHubResponseShapeError, InvalidEventError
from .normalise import normalise_event
from .observability import IngestionEventLogger, IngestionRunContext

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from .client import GitHubCredentials, GitHubEventsClient

    type SessionFactory = async_sessionmaker[AsyncSession]

_FETCH_ERRORS: tuple[type[Exception], ...] = (
    httpx.HTTPError,
    GitHubAPIError,
    GitHubResponseShapeError,
)


@dataclasses.dataclass(frozen=True, slots=True)
class ActivityIngestionConfig:
    """Runtime knobs for activity ingestion."""

    max_events: int = 100


@dataclasses.dataclass(frozen=True, slots=True)
class ActivityIngestionResult:
    """Summary of a single ingestion run."""

    user: str
    fetched: int = 0
    ingested: int = 0
    duplicates: int = 0
    invalid: int = 0
    label_transitions: int = 0
    fetch_failed: bool = False


@dataclasses.dataclass(slots=True)
class _RunCounters:
    fetched: int = 0
    ingested: int = 0
    duplicates: int = 0
    invalid: int = 0
    label_transitions: int = 0


class ActivityIngestionService:
    """Poll the GitHub events API and append new activity records.

    Runs on one service instance are serialised, so a trigger that fires
    while a run is in flight waits instead of racing the duplicate check.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        client: GitHubEventsClient,
        *,
        config: ActivityIngestionConfig | None = None,
        event_logger: IngestionEventLogger | None = None,
    ) -> None:
        """Create a service bound to a session factory and events client."""
        self._client = client
        self._writer = ActivityRecordWriter(session_factory)
        self._config = config or ActivityIngestionConfig()
        self._event_logger = event_logger or IngestionEventLogger()
        self._lock = asyncio.Lock()

    async def ingest(
        self, user: str, credentials: GitHubCredentials | None = None
    ) -> int:
        """Run one ingestion cycle and return the number of new records."""
        result = await self.run(user, credentials)
        return result.ingested

    async def run(
        self, user: str, credentials: GitHubCredentials | None = None
    ) -> ActivityIngestionResult:
        """Run one ingestion cycle and return its full summary."""
        async with self._lock:
            context = IngestionRunContext(user=user, started_at=utcnow())
            self._event_logger.log_run_started(context)
            try:
                result = await self._run_locked(context, credentials)
            except BaseException as exc:
                self._event_logger.log_run_failed(
                    context, exc, utcnow() - context.started_at
                )
                raise

            self._event_logger.log_run_completed(
                context, result, utcnow() - context.started_at
            )
            return result

    async def _run_locked(
        self,
        context: IngestionRunContext,
        credentials: GitHubCredentials | None,
    ) -> ActivityIngestionResult:
        try:
            raw_events = await self._client.fetch_user_events(
                context.user, credentials
            )
        except _FETCH_ERRORS as exc:
            self._event_logger.log_fetch_skipped(context, exc)
            return ActivityIngestionResult(user=context.user, fetch_failed=True)

        counters = _RunCounters()
        for raw in raw_events[: self._config.max_events]:
            counters.fetched += 1
            await self._ingest_one(context, raw, counters)

        return ActivityIngestionResult(
            user=context.user,
            fetched=counters.fetched,
            ingested=counters.ingested,
            duplicates=counters.duplicates,
            invalid=counters.invalid,
            label_transitions=counters.label_transitions,
        )

    async def _ingest_one(
        self,
        context: IngestionRunContext,
        raw: object,
        counters: _RunCounters,
    ) -> None:
        try:
            envelope = normalise_event(raw)
        except InvalidEventError as exc:
            self._event_logger.log_event_rejected(context, exc)
            counters.invalid += 1
            return

        if await self._writer.exists(envelope.external_id):
            counters.duplicates += 1
            return

        outcome = await self._writer.write(envelope)
        if not outcome.created:
            counters.duplicates += 1
            return

        counters.ingested += 1
        if envelope.label_transition is not None:
            counters.label_transitions += 1
