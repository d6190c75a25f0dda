"""GitHub events client, normalisation, and the ingestion service."""

from __future__ import annotations

from .categories import EventCategory, build_summary, category_label, derive_category
from .client import (
    GitHubCredentials,
    GitHubEventsClient,
    GitHubEventsConfig,
    GitHubRESTEventsClient,
)
from .ingestion import (
    ActivityIngestionConfig,
    ActivityIngestionResult,
    ActivityIngestionService,
)
from .normalise import normalise_event
from .observability import (
    ErrorCategory,
    IngestionEventLogger,
    IngestionEventType,
    IngestionRunContext,
    categorize_error,
)

__all__ = [
    "ActivityIngestionConfig",
    "ActivityIngestionResult",
    "ActivityIngestionService",
    "ErrorCategory",
    "EventCategory",
    "GitHubCredentials",
    "GitHubEventsClient",
    "GitHubEventsConfig",
    "GitHubRESTEventsClient",
    "IngestionEventLogger",
    "IngestionEventType",
    "IngestionRunContext",
    "build_summary",
    "categorize_error",
    "category_label",
    "derive_category",
    "normalise_event",
]
