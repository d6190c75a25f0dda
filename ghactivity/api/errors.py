"""Domain exceptions and Falcon error handlers for the API layer.

Usage
-----
Register the handler on the Falcon app::

    from ghactivity.api.errors import InvalidInputError, handle_invalid_input

    app.add_error_handler(InvalidInputError, handle_invalid_input)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["InvalidInputError", "handle_invalid_input"]


class InvalidInputError(Exception):
    """Raised for client validation errors that should map to HTTP 400.

    Only intentional validation failures are surfaced this way; any other
    exception still propagates as a 500.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the query parameter that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)

    @classmethod
    def missing(cls, field: str) -> InvalidInputError:
        """Build the error for a required parameter that was not supplied."""
        return cls("parameter is required", field=field)

    @classmethod
    def not_a_date(cls, field: str, raw: str) -> InvalidInputError:
        """Build the error for a parameter that is not an ISO date."""
        return cls(f"expected an ISO 8601 date or datetime, got {raw!r}", field=field)


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response."""
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid input",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media
