"""ghactivity HTTP runtime entrypoint.

Granian loads ``ghactivity.runtime:create_app`` as an ASGI factory. When
``GHACTIVITY_DATABASE_URL`` is set the app serves the stats and labels
endpoints; otherwise only the health probes.

Configuration is driven by environment variables:

- ``GHACTIVITY_HOST``: Bind address (default ``0.0.0.0``)
- ``GHACTIVITY_PORT``: Listen port (default ``8080``)
- ``GHACTIVITY_LOG_LEVEL``: Log level (default ``INFO``)
- ``GHACTIVITY_DATABASE_URL``: Database connection URL (optional)

Run the service directly with ``python -m ghactivity.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from ghactivity.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
    except ValueError as exc:
        log_error(logger, "Invalid GHACTIVITY_PORT value: %r", port_str)
        raise SystemExit(1) from exc
    if not _MIN_PORT <= port <= _MAX_PORT:
        log_error(
            logger,
            "Invalid GHACTIVITY_PORT value: %r (must be %d-%d)",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
        )
        raise SystemExit(1)
    return port


def create_app() -> falcon.asgi.App:
    """Build the Falcon app from the environment.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    from ghactivity.api.app import AppDependencies
    from ghactivity.api.app import create_app as _create_api_app

    database_url = os.environ.get("GHACTIVITY_DATABASE_URL")
    if not database_url:
        return _create_api_app()

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    engine = create_async_engine(database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    return _create_api_app(AppDependencies(session_factory=session_factory))


def main() -> None:
    """Start the HTTP runtime under Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("GHACTIVITY_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("GHACTIVITY_PORT", "8080"))
    log_level_str = os.environ.get("GHACTIVITY_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid GHACTIVITY_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting ghactivity runtime on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "ghactivity.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
