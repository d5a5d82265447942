"""Monotonic clock port, system adapter, and stopwatch time arithmetic.

Provides ClockPort (Protocol) and SystemClock for measuring elapsed time,
plus the pure functions the render loop uses to compute and display
durations.

Timing uses time.monotonic(), which does not move with NTP adjustments
or manual clock changes. Its epoch is arbitrary, so only *differences*
between now() calls mean anything (PEP 418).

Display format::

    " MM:SS.Ds"

``MM`` is total minutes (never wrapped at 60), ``SS`` is seconds
modulo 60 and ``D`` is the decisecond digit, truncated.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Protocol, runtime_checkable

_ONE_MILLISECOND = timedelta(milliseconds=1)


@runtime_checkable
class ClockPort(Protocol):
    """Monotonic clock for timing measurements.

    The default implementation wraps ``time.monotonic()``. Tests
    inject a deterministic fake clock for reproducible timing.
    """

    def now(self) -> float:
        """Return monotonic time in seconds.

        Returns:
            A float representing seconds from an arbitrary epoch.
            Only the *difference* between two calls is meaningful.
        """
        ...


class SystemClock:
    """Production clock wrapping ``time.monotonic()``.

    Satisfies :class:`ClockPort` via structural subtyping (PEP 544).
    """

    def now(self) -> float:
        """Return monotonic time in seconds."""
        return time.monotonic()


def elapsed(start: float, clock: ClockPort) -> float:
    """Seconds since *start*."""
    return clock.now() - start


def lap_delta(last_lap: float, clock: ClockPort) -> float:
    """Seconds since the most recently processed lap."""
    return clock.now() - last_lap


def format_duration(duration: float | timedelta) -> str:
    """Render *duration* as ``" MM:SS.Ds"``.

    Accepts seconds as a float or a :class:`~datetime.timedelta`.
    Floats are converted through ``timedelta`` so they are rounded to
    whole microseconds before truncating to milliseconds; this keeps
    values such as ``2.3`` from landing one decisecond short.

    Args:
        duration: A non-negative duration.

    Returns:
        The formatted string, e.g. ``" 01:01.5s"`` for 61.5 seconds.
    """
    if not isinstance(duration, timedelta):
        duration = timedelta(seconds=duration)
    millis = duration // _ONE_MILLISECOND
    total_seconds = millis // 1000
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    deciseconds = millis % 1000 // 100
    return f" {minutes:02d}:{seconds:02d}.{deciseconds}s"
