"""Application factory for the ghactivity Falcon ASGI application.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with the stats and labels endpoints::

    from ghactivity.api.app import AppDependencies, create_app

    app = create_app(AppDependencies(session_factory=session_factory))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from ghactivity.api.errors import InvalidInputError, handle_invalid_input
from ghactivity.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    session_factory
        Async session factory for database access. When ``None`` only the
        health endpoints are registered.

    """

    session_factory: async_sessionmaker[AsyncSession] | None = None


def _add_domain_routes(
    app: falcon.asgi.App, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    from ghactivity.analytics import ActivityQueryService, LabelDurationService
    from ghactivity.api.labels.resources import (
        LabelAverageResource,
        LabelHistoryResource,
    )
    from ghactivity.api.stats.resources import (
        CommitCountResource,
        EventTypeCountsResource,
        RepositoryCountResource,
    )

    queries = ActivityQueryService(session_factory)
    labels = LabelDurationService(session_factory)

    app.add_route("/stats/event-types", EventTypeCountsResource(queries))
    app.add_route("/stats/commits", CommitCountResource(queries))
    app.add_route("/stats/repositories", RepositoryCountResource(queries))
    app.add_route("/labels/{owner}/{name}/average", LabelAverageResource(labels))
    app.add_route("/labels/{owner}/{name}/history", LabelHistoryResource(labels))


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. Without a session factory only
        ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    session_factory = dependencies.session_factory if dependencies else None

    app = falcon.asgi.App()

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(session_factory))

    if session_factory is not None:
        _add_domain_routes(app, session_factory)

    app.add_error_handler(InvalidInputError, handle_invalid_input)

    return app
