"""Broker configuration for the ghactivity Dramatiq actors.

Actors call :func:`ensure_broker_configured` when they run rather than at
import time, so importing the module never mutates global broker state.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

_BROKER_LOCK = threading.Lock()
_broker_configured = False

_TRUTHY = {"1", "true", "yes"}
_PYTEST_ENV_KEYS = ("PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_ADDOPTS")


def _is_running_tests() -> bool:
    """Return True when pytest is driving the current process."""
    return "pytest" in sys.modules or any(key in os.environ for key in _PYTEST_ENV_KEYS)


def _should_use_stub_broker() -> bool:
    """Return True when a StubBroker may stand in for a real broker."""
    allow_stub = os.environ.get("GHACTIVITY_ALLOW_STUB_BROKER", "")
    return allow_stub.strip().lower() in _TRUTHY or _is_running_tests()


def ensure_broker_configured() -> None:
    """Make sure a Dramatiq broker is set before an actor body runs.

    Idempotent and safe to call from several worker threads at once.

    Raises
    ------
    RuntimeError
        If no broker is configured and a stub broker is not allowed.

    """
    global _broker_configured

    if _broker_configured:
        return

    with _BROKER_LOCK:
        if _broker_configured:
            return

        try:
            current_broker = dramatiq.get_broker()
        except (ImportError, LookupError):
            # ImportError: the default RabbitMQ broker's client is missing.
            current_broker = None

        if current_broker is None:
            if not _should_use_stub_broker():
                message = (
                    "No Dramatiq broker configured. "
                    "Set GHACTIVITY_ALLOW_STUB_BROKER=1 for "
                    "local/test runs or configure a real broker."
                )
                raise RuntimeError(message)
            dramatiq.set_broker(StubBroker())

        _broker_configured = True
