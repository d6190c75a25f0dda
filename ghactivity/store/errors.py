"""Record store error types."""

from __future__ import annotations


class ActivityPersistError(RuntimeError):
    """Raised when a rejected insert cannot be matched to an existing record."""

    def __init__(self, external_id: str) -> None:
        """Include the offending external ID for logging."""
        self.external_id = external_id
        super().__init__(
            f"insert for activity {external_id!r} failed and no existing row was found"
        )
