"""Event types carried by the stopwatch event channel."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TypeAlias


class TimerEvent(enum.Enum):
    """Control events consumed by the render loop."""

    TICK = "tick"
    """Redraw the elapsed-time line now."""

    LAP = "lap"
    """A lap boundary occurred now."""

    STOP = "stop"
    """Terminate the render loop."""


@dataclass(frozen=True, slots=True)
class ProducerFailed:
    """A supervised producer died with *error*.

    Sent by the producer supervisor so the render loop can decide
    whether to fail fast or keep running degraded.
    """

    source: str
    error: BaseException


Event: TypeAlias = TimerEvent | ProducerFailed
"""Anything a producer may send on the channel."""
