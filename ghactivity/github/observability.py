"""Observability primitives for GitHub activity ingestion.

Provides structured femtologging events and error categorisation for
ingestion runs, skipped fetch cycles, and rejected events. Events are single
lines of ``key=value`` pairs prefixed with the event type so log aggregators
can parse them.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

import httpx
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from ghactivity.logging import get_logger, log_error, log_info, log_warning

from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    InvalidEventError,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from .ingestion import ActivityIngestionResult

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500
_HTTP_RATE_LIMITED = {403, 429}


class IngestionEventType(enum.StrEnum):
    """Structured log event types for ingestion observability."""

    RUN_STARTED = "ingestion.run.started"
    RUN_COMPLETED = "ingestion.run.completed"
    RUN_FAILED = "ingestion.run.failed"
    FETCH_SKIPPED = "ingestion.fetch.skipped"
    EVENT_REJECTED = "ingestion.event.rejected"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class IngestionRunContext:
    """Shared context for a single ingestion run."""

    user: str
    started_at: dt.datetime


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (httpx.TransportError, ErrorCategory.TRANSIENT),
    (GitHubResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (InvalidEventError, ErrorCategory.SCHEMA_DRIFT),
    (GitHubConfigError, ErrorCategory.CONFIGURATION),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)


def _categorize_api_error(exc: GitHubAPIError) -> ErrorCategory:
    status = exc.status_code
    if status is None:
        return ErrorCategory.CLIENT_ERROR
    if status >= _HTTP_SERVER_ERROR_THRESHOLD:
        return ErrorCategory.TRANSIENT
    if status in _HTTP_RATE_LIMITED:
        return ErrorCategory.RATE_LIMITED
    return ErrorCategory.CLIENT_ERROR


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    Returns:
        ErrorCategory indicating the type of failure for alert routing.

    """
    if isinstance(exc, GitHubAPIError):
        return _categorize_api_error(exc)

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class IngestionEventLogger:
    """Emit structured ingestion events via femtologging.

    Successful runs log at INFO, skipped fetches and rejected events at
    WARNING, and failed runs at ERROR.
    """

    def log_run_started(self, context: IngestionRunContext) -> None:
        """Log ingestion run start."""
        log_info(
            logger,
            "[%s] user=%s started_at=%s",
            IngestionEventType.RUN_STARTED,
            context.user,
            context.started_at.isoformat(),
        )

    def log_run_completed(
        self,
        context: IngestionRunContext,
        result: ActivityIngestionResult,
        duration: dt.timedelta,
    ) -> None:
        """Log run completion with per-outcome counts."""
        log_info(
            logger,
            "[%s] user=%s duration_seconds=%.3f fetched=%d ingested=%d "
            "duplicates=%d invalid=%d label_transitions=%d fetch_failed=%s",
            IngestionEventType.RUN_COMPLETED,
            context.user,
            duration.total_seconds(),
            result.fetched,
            result.ingested,
            result.duplicates,
            result.invalid,
            result.label_transitions,
            result.fetch_failed,
        )

    def log_run_failed(
        self,
        context: IngestionRunContext,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log failed ingestion run with error categorization."""
        log_error(
            logger,
            "[%s] user=%s duration_seconds=%.3f "
            "error_type=%s error_category=%s error_message=%s",
            IngestionEventType.RUN_FAILED,
            context.user,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_fetch_skipped(
        self, context: IngestionRunContext, error: BaseException
    ) -> None:
        """Log a fetch failure that turns the run into a no-op cycle."""
        log_warning(
            logger,
            "[%s] user=%s error_type=%s error_category=%s error_message=%s",
            IngestionEventType.FETCH_SKIPPED,
            context.user,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )

    def log_event_rejected(
        self, context: IngestionRunContext, error: InvalidEventError
    ) -> None:
        """Log an event dropped because its envelope could not be decoded."""
        log_warning(
            logger,
            "[%s] user=%s event_id=%s reason=%s",
            IngestionEventType.EVENT_REJECTED,
            context.user,
            error.event_id,
            error.reason,
        )
