"""GitHub client and ingestion errors."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub events HTTP {status_code}", status_code=status_code)


class GitHubResponseShapeError(RuntimeError):
    """Raised when the events endpoint returns something other than a list."""

    @classmethod
    def not_a_list(cls, type_name: str) -> GitHubResponseShapeError:
        """Return an error for a body that is not a JSON array."""
        return cls(f"GitHub events response must be a JSON array, got {type_name}")

    @classmethod
    def invalid_json(cls) -> GitHubResponseShapeError:
        """Return an error for a body that is not valid JSON."""
        return cls("GitHub events response is not valid JSON")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_username(cls) -> GitHubConfigError:
        """Return an error when no GitHub username is configured."""
        return cls("GHACTIVITY_USERNAME is required to poll GitHub activity")

    @classmethod
    def invalid_setting(cls, name: str, raw: str) -> GitHubConfigError:
        """Return an error for an environment value that cannot be parsed."""
        return cls(f"{name} has an invalid value: {raw!r}")


class InvalidEventError(ValueError):
    """Raised when a raw event lacks the fields needed to store it."""

    def __init__(self, reason: str, *, event_id: str | None = None) -> None:
        """Record the reason and, when known, the event ID."""
        self.reason = reason
        self.event_id = event_id
        super().__init__(
            f"event {event_id}: {reason}" if event_id is not None else reason
        )
