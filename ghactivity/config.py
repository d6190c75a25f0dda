"""Environment-driven settings for the ingestion jobs and CLI."""

from __future__ import annotations

import dataclasses as dc
import os

from ghactivity.analytics import InvalidTrackedLabelError, TrackedLabel
from ghactivity.github.client import GitHubCredentials
from ghactivity.github.errors import GitHubConfigError


def _env(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def parse_tracked_labels(raw: str | None) -> tuple[TrackedLabel, ...]:
    """Parse a comma-separated list of ``owner/name#label`` slugs.

    Raises
    ------
    GitHubConfigError
        If any entry is malformed.

    """
    if not raw:
        return ()
    labels: list[TrackedLabel] = []
    for entry in raw.split(","):
        if not entry.strip():
            continue
        try:
            labels.append(TrackedLabel.parse(entry))
        except InvalidTrackedLabelError as exc:
            raise GitHubConfigError.invalid_setting(
                "GHACTIVITY_TRACKED_LABELS", entry
            ) from exc
    return tuple(dict.fromkeys(labels))


@dc.dataclass(frozen=True, slots=True)
class ActivitySettings:
    """Who to poll, how to authenticate, and which labels to record.

    Attributes
    ----------
    username
        GitHub login whose public events are ingested.
    credentials
        Token or OAuth app client pair; anonymous when all are unset.
    tracked_labels
        Repository labels whose time-to-label history is recorded.

    """

    username: str | None = None
    credentials: GitHubCredentials = dc.field(default_factory=GitHubCredentials)
    tracked_labels: tuple[TrackedLabel, ...] = ()

    @classmethod
    def from_env(cls) -> ActivitySettings:
        """Build settings from ``GHACTIVITY_*`` environment variables."""
        return cls(
            username=_env("GHACTIVITY_USERNAME"),
            credentials=GitHubCredentials(
                token=_env("GHACTIVITY_GITHUB_TOKEN"),
                client_id=_env("GHACTIVITY_CLIENT_ID"),
                client_secret=_env("GHACTIVITY_CLIENT_SECRET"),
            ),
            tracked_labels=parse_tracked_labels(_env("GHACTIVITY_TRACKED_LABELS")),
        )

    def require_username(self, override: str | None = None) -> str:
        """Return ``override`` or the configured username.

        Raises
        ------
        GitHubConfigError
            If neither is set.

        """
        username = (override or "").strip() or self.username
        if not username:
            raise GitHubConfigError.missing_username()
        return username
