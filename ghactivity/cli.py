"""Command-line entry points for one-off ingestion and label snapshots."""

from __future__ import annotations

import argparse
import asyncio
import os
import typing as typ

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from ghactivity.analytics import InvalidTrackedLabelError, TrackedLabel
from ghactivity.config import ActivitySettings
from ghactivity.github.errors import GitHubConfigError
from ghactivity.jobs.tasks import record_tracked_label_durations, run_ingestion
from ghactivity.logging import configure_logging, get_logger, log_warning
from ghactivity.store import init_storage

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    type SessionFactory = async_sessionmaker[AsyncSession]

logger = get_logger(__name__)

_EXIT_CONFIG_ERROR = 2


def _tracked_label(value: str) -> TrackedLabel:
    try:
        return TrackedLabel.parse(value)
    except InvalidTrackedLabelError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ghactivity", description=__doc__)
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy async URL; defaults to GHACTIVITY_DATABASE_URL",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level; defaults to GHACTIVITY_LOG_LEVEL or INFO",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    ingest = commands.add_parser("ingest", help="Run one ingestion cycle")
    ingest.add_argument(
        "--user", default=None, help="GitHub login; defaults to GHACTIVITY_USERNAME"
    )

    durations = commands.add_parser(
        "record-label-durations",
        help="Record time-to-label snapshots for tracked labels",
    )
    durations.add_argument(
        "--label",
        dest="labels",
        action="append",
        type=_tracked_label,
        default=None,
        metavar="OWNER/NAME#LABEL",
        help="Label to record; repeatable. Defaults to GHACTIVITY_TRACKED_LABELS",
    )
    return parser


async def _with_store[T](
    database_url: str,
    body: typ.Callable[[SessionFactory], typ.Awaitable[T]],
) -> T:
    engine = create_async_engine(database_url)
    try:
        await init_storage(engine)
        return await body(async_sessionmaker(engine, expire_on_commit=False))
    finally:
        await engine.dispose()


def _ingest(database_url: str, settings: ActivitySettings, user: str | None) -> int:
    username = settings.require_username(user)
    result = asyncio.run(
        _with_store(
            database_url,
            lambda sf: run_ingestion(sf, username, settings.credentials),
        )
    )
    if result.fetch_failed:
        print(f"fetch for {username} skipped; see log for details")
        return 0
    print(
        f"{username}: {result.ingested} new, {result.duplicates} already stored, "
        f"{result.invalid} invalid of {result.fetched} fetched"
    )
    return 0


def _record_durations(
    database_url: str,
    settings: ActivitySettings,
    labels: list[TrackedLabel] | None,
) -> int:
    tracked = tuple(labels) if labels else settings.tracked_labels
    if not tracked:
        print("no tracked labels configured")
        return 0
    recorded = asyncio.run(
        _with_store(
            database_url,
            lambda sf: record_tracked_label_durations(sf, tracked),
        )
    )
    for slug, seconds in recorded.items():
        print(f"{slug}: {'no open labeled issues' if seconds is None else seconds}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run a ``ghactivity`` subcommand.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 2 on missing or invalid configuration.

    """
    args = _build_parser().parse_args(argv)

    level, invalid = configure_logging(
        args.log_level or os.environ.get("GHACTIVITY_LOG_LEVEL", "INFO")
    )
    if invalid:
        log_warning(logger, "Invalid log level, falling back to %s", level)

    database_url = args.database_url or os.environ.get("GHACTIVITY_DATABASE_URL")
    if not database_url:
        print("a database URL is required (--database-url or GHACTIVITY_DATABASE_URL)")
        return _EXIT_CONFIG_ERROR

    try:
        settings = ActivitySettings.from_env()
        if args.command == "ingest":
            return _ingest(database_url, settings, args.user)
        return _record_durations(database_url, settings, args.labels)
    except GitHubConfigError as exc:
        print(f"configuration error: {exc}")
        return _EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
