"""Dramatiq actors for scheduled activity ingestion and label snapshots.

Usage
-----
Queue an ingestion cycle for the configured user:

>>> ingest_activity_job.send(database_url="postgresql+asyncpg://...")

Queue snapshots for every label in ``GHACTIVITY_TRACKED_LABELS``:

>>> record_label_durations_job.send(database_url="postgresql+asyncpg://...")

"""

from __future__ import annotations

import asyncio
import threading
import typing as typ

import dramatiq
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from ghactivity.config import ActivitySettings
from ghactivity.jobs._broker import ensure_broker_configured
from ghactivity.jobs.tasks import record_tracked_label_durations, run_ingestion
from ghactivity.store import init_storage

type SessionFactory = async_sessionmaker[AsyncSession]

# Reused across actor invocations within a worker process. Each invocation
# runs on a fresh event loop, so connections are not pooled between runs.
_ENGINE_CACHE: dict[str, AsyncEngine] = {}
_SESSION_FACTORY_CACHE: dict[str, SessionFactory] = {}
_CACHE_LOCK = threading.Lock()


def _get_or_create_session_factory(
    database_url: str,
) -> tuple[AsyncEngine, SessionFactory]:
    """Return the cached engine and session factory for ``database_url``.

    Thread-safe: Dramatiq runs actors on several worker threads.
    """
    with _CACHE_LOCK:
        if database_url not in _ENGINE_CACHE:
            _ENGINE_CACHE[database_url] = create_async_engine(
                database_url, poolclass=NullPool
            )
        engine = _ENGINE_CACHE[database_url]
        if database_url not in _SESSION_FACTORY_CACHE:
            _SESSION_FACTORY_CACHE[database_url] = async_sessionmaker(
                engine, expire_on_commit=False
            )
        return engine, _SESSION_FACTORY_CACHE[database_url]


def _run_actor_async[T](
    database_url: str,
    async_fn: typ.Callable[[SessionFactory], typ.Awaitable[T]],
) -> T:
    """Configure the broker, ensure tables exist, and run ``async_fn``."""
    ensure_broker_configured()
    engine, session_factory = _get_or_create_session_factory(database_url)

    async def run() -> T:
        await init_storage(engine)
        return await async_fn(session_factory)

    return asyncio.run(run())


@dramatiq.actor
def ingest_activity_job(database_url: str, user: str | None = None) -> int:
    """Run one ingestion cycle and return the number of new records.

    Parameters
    ----------
    database_url
        SQLAlchemy URL for the record store.
    user
        GitHub login to poll; defaults to ``GHACTIVITY_USERNAME``.

    Raises
    ------
    GitHubConfigError
        If no user is given and none is configured.

    """
    settings = ActivitySettings.from_env()
    username = settings.require_username(user)

    async def execute(session_factory: SessionFactory) -> int:
        result = await run_ingestion(
            session_factory, username, settings.credentials
        )
        return result.ingested

    return _run_actor_async(database_url, execute)


@dramatiq.actor
def record_label_durations_job(database_url: str) -> dict[str, int | None]:
    """Record a time-to-label snapshot for every tracked label."""
    settings = ActivitySettings.from_env()

    async def execute(session_factory: SessionFactory) -> dict[str, int | None]:
        return await record_tracked_label_durations(
            session_factory, settings.tracked_labels
        )

    return _run_actor_async(database_url, execute)
