"""Track GitHub activity for a user and answer aggregate queries over it.

The package is split into three layers that communicate only through the
record store:

- :mod:`ghactivity.github` polls the events API and normalises events.
- :mod:`ghactivity.store` persists activity records and issue label state.
- :mod:`ghactivity.analytics` answers read-only aggregate queries.
"""

from __future__ import annotations

__version__ = "0.1.0"
