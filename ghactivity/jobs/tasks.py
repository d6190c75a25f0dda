"""Async bodies shared by the Dramatiq actors and the CLI."""

from __future__ import annotations

import asyncio
import contextlib
import threading
import typing as typ

from ghactivity.analytics import LabelDurationService
from ghactivity.github import (
    ActivityIngestionService,
    GitHubEventsConfig,
    GitHubRESTEventsClient,
)
from ghactivity.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from ghactivity.analytics import TrackedLabel
    from ghactivity.github import (
        ActivityIngestionResult,
        GitHubCredentials,
        GitHubEventsClient,
    )

    type SessionFactory = async_sessionmaker[AsyncSession]

logger = get_logger(__name__)

# Actors run on several worker threads, each with its own event loop, so
# runs for one user are serialised with thread locks rather than asyncio ones.
_USER_LOCKS: dict[str, threading.Lock] = {}
_USER_LOCKS_GUARD = threading.Lock()
_LOCK_POLL_S = 0.05


def _user_lock(username: str) -> threading.Lock:
    with _USER_LOCKS_GUARD:
        return _USER_LOCKS.setdefault(username.lower(), threading.Lock())


@contextlib.asynccontextmanager
async def _single_flight(username: str) -> typ.AsyncIterator[None]:
    """Hold the process-wide ingestion lock for ``username``.

    The lock is polled so a waiting run never blocks its event loop and can
    still be cancelled.
    """
    lock = _user_lock(username)
    while not lock.acquire(blocking=False):
        await asyncio.sleep(_LOCK_POLL_S)
    try:
        yield
    finally:
        lock.release()


async def run_ingestion(
    session_factory: SessionFactory,
    username: str,
    credentials: GitHubCredentials | None = None,
    *,
    client: GitHubEventsClient | None = None,
) -> ActivityIngestionResult:
    """Run one ingestion cycle for ``username``.

    A REST client is built from ``GHACTIVITY_GITHUB_*`` settings and closed
    afterwards unless ``client`` is supplied. Runs for the same user never
    overlap within the process, whichever thread or event loop they start on.
    """
    async with _single_flight(username):
        return await _run_ingestion(session_factory, username, credentials, client)


async def _run_ingestion(
    session_factory: SessionFactory,
    username: str,
    credentials: GitHubCredentials | None,
    client: GitHubEventsClient | None,
) -> ActivityIngestionResult:
    if client is not None:
        service = ActivityIngestionService(session_factory, client)
        return await service.run(username, credentials)

    rest_client = GitHubRESTEventsClient(GitHubEventsConfig.from_env())
    try:
        service = ActivityIngestionService(session_factory, rest_client)
        return await service.run(username, credentials)
    finally:
        await rest_client.aclose()


async def record_tracked_label_durations(
    session_factory: SessionFactory,
    tracked_labels: typ.Iterable[TrackedLabel],
    *,
    now: dt.datetime | None = None,
) -> dict[str, int | None]:
    """Record a duration snapshot for each tracked label.

    Returns
    -------
    dict[str, int | None]
        Recorded average per ``owner/name#label`` slug; ``None`` where no open
        issue carried the label and nothing was recorded.

    """
    service = LabelDurationService(session_factory)
    recorded: dict[str, int | None] = {}
    for tracked in tracked_labels:
        snapshot = await service.record_label_duration(
            tracked.repository, tracked.label, now=now
        )
        recorded[tracked.slug] = (
            snapshot.duration_seconds if snapshot is not None else None
        )
        log_info(
            logger,
            "Label duration for %s: %s",
            tracked.slug,
            "not recorded" if snapshot is None else f"{snapshot.duration_seconds}s",
        )
    return recorded
