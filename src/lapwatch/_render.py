"""The render loop: sole consumer of the event channel.

:class:`RenderLoop` owns every piece of mutable stopwatch state and
every byte written to the terminal.  It reacts to three events:

- ``TICK`` — redraw the status line ``"<round>: <elapsed>"`` in place.
  The cursor is saved before and restored after the write, so the line
  is overwritten on the next tick instead of scrolling.
- ``LAP`` — close the current lap: emit a line break and a permanent
  ``"Lap:  <delta> "`` line, which scrolls the history upwards while the
  status line keeps overwriting the row below it.
- ``STOP`` — close the channel (dropping anything still queued) and
  return the final :class:`StopwatchState`.

Lap durations are measured between the instants the ``LAP`` events are
*processed*, not when the keys were pressed.

Terminal failures are not caught here: a display that cannot be
written to ends the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from lapwatch._channel import EventChannel
from lapwatch._clock import ClockPort, elapsed, format_duration, lap_delta
from lapwatch._errors import ProducerFailedError
from lapwatch._events import Event, ProducerFailed, TimerEvent
from lapwatch._terminal import NEWLINE, RESTORE_CURSOR, SAVE_CURSOR, TerminalPort

logger = logging.getLogger(__name__)


@dataclass
class StopwatchState:
    """Timer state owned by the render loop.

    Attributes:
        start: Monotonic instant the loop started; never changes.
        last_lap: Instant the most recent lap was processed.
        round: Number of laps processed so far.
        laps: Lap durations in seconds, in processing order.
        stopped: Set once ``STOP`` (or end of stream) has been handled.
    """

    start: float
    last_lap: float
    round: int = 0
    laps: list[float] = field(default_factory=list)
    stopped: bool = False

    @classmethod
    def begin(cls, now: float) -> StopwatchState:
        return cls(start=now, last_lap=now)


def render_status(round_: int, duration: float) -> str:
    """Status line body, e.g. ``"   2:  00:07.3s"``."""
    return f"{round_:>4}: {format_duration(duration)}"


def render_lap(delta: float) -> str:
    """Lap block: a separator line break, then ``"Lap:  <delta> "``."""
    return f"{NEWLINE}Lap:  {format_duration(delta)} {NEWLINE}"


class RenderLoop:
    """Consume events, update state, draw the terminal.

    Args:
        channel: The event channel; this loop is its only receiver.
        terminal: Output port.  Every write is followed by a flush.
        clock: Monotonic clock used for all instants.
        producer_failure: ``"fail"`` raises
            :class:`~lapwatch._errors.ProducerFailedError` when a
            ``ProducerFailed`` event arrives; ``"degrade"`` logs it and
            keeps running.
    """

    def __init__(
        self,
        channel: EventChannel,
        terminal: TerminalPort,
        clock: ClockPort,
        *,
        producer_failure: Literal["fail", "degrade"] = "fail",
    ) -> None:
        self._channel = channel
        self._terminal = terminal
        self._clock = clock
        self._producer_failure = producer_failure
        self._state: StopwatchState | None = None

    @property
    def state(self) -> StopwatchState:
        """Current state.

        Raises:
            RuntimeError: If the loop has not been started.
        """
        if self._state is None:
            msg = "RenderLoop has not been started"
            raise RuntimeError(msg)
        return self._state

    async def run(self) -> StopwatchState:
        """Process events until ``STOP`` or end of stream."""
        self._state = StopwatchState.begin(self._clock.now())
        logger.info("Stopwatch started")
        while True:
            event = await self._channel.receive()
            if event is None:
                logger.info("Event stream ended")
                self._state.stopped = True
                break
            if not self.handle(event):
                break
        logger.info("Stopwatch stopped after %d lap(s)", self._state.round)
        return self._state

    def handle(self, event: Event) -> bool:
        """Apply one event.

        Returns:
            ``False`` once the loop must stop, ``True`` otherwise.
        """
        state = self.state
        if state.stopped:
            return False
        match event:
            case TimerEvent.TICK:
                self._on_tick(state)
            case TimerEvent.LAP:
                self._on_lap(state)
            case TimerEvent.STOP:
                state.stopped = True
                self._channel.close()
                return False
            case ProducerFailed():
                self._on_producer_failed(event)
        return True

    # -- Event handlers -----------------------------------------------------

    def _on_tick(self, state: StopwatchState) -> None:
        line = render_status(state.round, elapsed(state.start, self._clock))
        self._terminal.write(f"{SAVE_CURSOR}{line}{RESTORE_CURSOR}")
        self._terminal.flush()

    def _on_lap(self, state: StopwatchState) -> None:
        delta = lap_delta(state.last_lap, self._clock)
        state.last_lap += delta
        state.round += 1
        state.laps.append(delta)
        logger.debug("Lap %d:%s", state.round, format_duration(delta))
        self._terminal.write(render_lap(delta))
        self._terminal.flush()

    def _on_producer_failed(self, event: ProducerFailed) -> None:
        if self._producer_failure == "fail":
            raise ProducerFailedError(event.source) from event.error
        logger.warning(
            "Producer '%s' failed, continuing without it: %s",
            event.source,
            event.error,
        )
