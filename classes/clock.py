"""
Clock authority for the attempt session.

Every deadline comparison reads "now" from the clock installed on the app,
never from a timestamp sent by the client.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from threading import Lock

from flask import current_app

_EXTENSION_KEY = "quiz_clock"


class Clock:
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    """Host wall clock, returned as naive UTC to match stored instants."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


class FrozenClock(Clock):
    """Settable clock used by tests and local simulations."""

    def __init__(self, start: datetime) -> None:
        self._now = start
        self._lock = Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, instant: datetime) -> None:
        with self._lock:
            self._now = instant

    def advance(self, **kwargs) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(**kwargs)
            return self._now


def install_clock(app, clock: Clock) -> None:
    app.extensions[_EXTENSION_KEY] = clock


def get_clock() -> Clock:
    return current_app.extensions[_EXTENSION_KEY]
