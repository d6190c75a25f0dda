"""ghactivity HTTP API layer.

Usage
-----
Create and run the application::

    from ghactivity.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # adds the stats and labels endpoints

"""

from ghactivity.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
