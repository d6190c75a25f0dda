"""Error types shared across layers."""

from __future__ import annotations


class TimezoneAwareRequiredError(ValueError):
    """Raised when datetime inputs lack timezone information."""

    def __init__(self, context: str) -> None:
        """Attach a consistent message for the failing context."""
        self.context = context
        super().__init__(f"{context} must be timezone aware")

    @classmethod
    def for_created_at(cls) -> TimezoneAwareRequiredError:
        """Return an error indicating created_at was naive."""
        return cls("created_at")
