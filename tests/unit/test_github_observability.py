"""Unit tests for the ingestion observability module."""

from __future__ import annotations

import datetime as dt

import httpx
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from ghactivity.github import ActivityIngestionResult
from ghactivity.github import observability as observability_module
from ghactivity.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    InvalidEventError,
)
from ghactivity.github.observability import (
    ErrorCategory,
    IngestionEventLogger,
    IngestionRunContext,
    categorize_error,
)
from tests.helpers.fakes import RecordingLogger

_CONTEXT = IngestionRunContext(
    user="octocat", started_at=dt.datetime(2026, 3, 10, tzinfo=dt.UTC)
)


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (GitHubAPIError.http_error(503), ErrorCategory.TRANSIENT),
        (GitHubAPIError.http_error(429), ErrorCategory.RATE_LIMITED),
        (GitHubAPIError.http_error(404), ErrorCategory.CLIENT_ERROR),
        (GitHubAPIError("no status"), ErrorCategory.CLIENT_ERROR),
        (httpx.ReadTimeout("slow"), ErrorCategory.TRANSIENT),
        (GitHubResponseShapeError.invalid_json(), ErrorCategory.SCHEMA_DRIFT),
        (GitHubConfigError.missing_username(), ErrorCategory.CONFIGURATION),
        (
            OperationalError("SELECT 1", {}, Exception("down")),
            ErrorCategory.DATABASE_CONNECTIVITY,
        ),
        (
            IntegrityError("INSERT", {}, Exception("dup")),
            ErrorCategory.DATA_INTEGRITY,
        ),
        (RuntimeError("?"), ErrorCategory.UNKNOWN),
    ],
)
def test_categorize_error(exc: BaseException, expected: ErrorCategory) -> None:
    """Exceptions map onto alert categories."""
    assert categorize_error(exc) == expected


class TestIngestionEventLogger:
    """Tests for structured ingestion log lines."""

    @pytest.fixture
    def recording_logger(self, monkeypatch: pytest.MonkeyPatch) -> RecordingLogger:
        """Swap the module logger for a recorder."""
        logger = RecordingLogger()
        monkeypatch.setattr(observability_module, "logger", logger)
        return logger

    def test_run_completed_reports_counts(
        self, recording_logger: RecordingLogger
    ) -> None:
        """Completion lines carry every outcome count."""
        result = ActivityIngestionResult(
            user="octocat", fetched=4, ingested=2, duplicates=1, invalid=1
        )

        IngestionEventLogger().log_run_completed(
            _CONTEXT, result, dt.timedelta(seconds=1.5)
        )

        (message,) = recording_logger.messages("INFO")
        assert message.startswith("[ingestion.run.completed] user=octocat")
        assert "duration_seconds=1.500" in message
        assert "fetched=4 ingested=2 duplicates=1 invalid=1" in message

    def test_fetch_skipped_is_a_warning(
        self, recording_logger: RecordingLogger
    ) -> None:
        """Skipped fetches log the error category at WARNING."""
        IngestionEventLogger().log_fetch_skipped(
            _CONTEXT, GitHubAPIError.http_error(403)
        )

        (message,) = recording_logger.messages("WARNING")
        assert "[ingestion.fetch.skipped]" in message
        assert "error_category=rate_limited" in message

    def test_event_rejected_names_the_event(
        self, recording_logger: RecordingLogger
    ) -> None:
        """Rejected events are identified by ID and reason."""
        IngestionEventLogger().log_event_rejected(
            _CONTEXT, InvalidEventError("missing created_at", event_id="99")
        )

        (message,) = recording_logger.messages("WARNING")
        assert "event_id=99" in message
        assert "reason=missing created_at" in message
