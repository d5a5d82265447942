"""Event producers and their supervisor.

Two producers feed the render loop:

- :func:`run_ticker` — sends :attr:`TimerEvent.TICK` at a fixed cadence.
- :func:`run_input` — translates keystrokes into :attr:`TimerEvent.LAP`
  and :attr:`TimerEvent.STOP`.

Neither has a termination condition of its own; the application cancels
them once the render loop returns.  :func:`supervise` wraps a producer
so that a crash is reported on the channel as a
:class:`~lapwatch._events.ProducerFailed` event instead of vanishing
with the task.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Literal, TypeAlias

from lapwatch._channel import Sender
from lapwatch._clock import ClockPort
from lapwatch._errors import ChannelClosedError
from lapwatch._events import ProducerFailed, TimerEvent
from lapwatch._keyboard import KeyboardPort, KeyEvent

logger = logging.getLogger(__name__)

Sleeper: TypeAlias = Callable[[float], Awaitable[None]]
"""Coroutine function with the signature of :func:`asyncio.sleep`."""


# ---------------------------------------------------------------------------
# Ticker
# ---------------------------------------------------------------------------


async def run_ticker(
    sender: Sender,
    interval: float,
    *,
    mode: Literal["fixed", "deadline"] = "fixed",
    clock: ClockPort | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> None:
    """Send ``TICK`` forever.

    In ``"fixed"`` mode the ticker sleeps *interval* after each send, so
    the real spacing drifts by the cost of the send and the sleep
    overhead.  In ``"deadline"`` mode it keeps a monotonic deadline,
    advances it by *interval* each round and sleeps only the remainder;
    when it falls behind it ticks immediately without trying to catch up
    the missed ticks.

    Args:
        sender: Channel handle to send on.
        interval: Seconds between ticks.
        mode: Scheduling strategy, ``"fixed"`` or ``"deadline"``.
        clock: Monotonic clock; required for ``"deadline"`` mode.
        sleep: Sleep coroutine, replaceable in tests.

    Raises:
        ValueError: If *interval* is not positive, or ``"deadline"``
            mode is requested without a clock.
        ChannelClosedError: When the render loop has closed the channel.
    """
    if interval <= 0:
        msg = f"interval must be positive, got {interval}"
        raise ValueError(msg)
    if mode == "deadline" and clock is None:
        msg = "deadline ticking requires a clock"
        raise ValueError(msg)

    if mode == "fixed":
        while True:
            sender.send(TimerEvent.TICK)
            await sleep(interval)

    assert clock is not None
    deadline = clock.now()
    while True:
        sender.send(TimerEvent.TICK)
        deadline += interval
        now = clock.now()
        if deadline < now:
            deadline = now
        await sleep(deadline - now)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


def translate_key(key: KeyEvent) -> TimerEvent | None:
    """Map a keystroke to a timer event.

    Enter (no modifiers) is a lap, Ctrl+C is a stop, everything else
    is ignored (``None``).
    """
    if key.key == "enter" and key.plain:
        return TimerEvent.LAP
    if key.key == "c" and key.ctrl and not key.alt:
        return TimerEvent.STOP
    return None


async def run_input(sender: Sender, keyboard: KeyboardPort) -> None:
    """Forward recognised keystrokes to the channel.

    Returns when the keyboard reports end of input.

    Raises:
        ChannelClosedError: When the render loop has closed the channel.
    """
    while True:
        key = await keyboard.read_key()
        if key is None:
            logger.info("Keyboard input closed")
            return
        event = translate_key(key)
        if event is None:
            logger.debug("Ignoring key %s", key)
            continue
        sender.send(event)


# ---------------------------------------------------------------------------
# Supervision
# ---------------------------------------------------------------------------


async def supervise(name: str, producer: Awaitable[None], sender: Sender) -> None:
    """Run *producer* and report its failure on the channel.

    Cancellation passes through untouched.  Any other exception is sent
    as ``ProducerFailed(name, exc)``.  A closed channel means the render
    loop is already gone, so that case is only logged.  The sender is
    closed when the producer ends, whatever the outcome.
    """
    try:
        await producer
    except asyncio.CancelledError:
        raise
    except ChannelClosedError:
        logger.debug("Producer '%s' stopped: channel closed", name)
    except Exception as exc:
        logger.error("Producer '%s' crashed: %s", name, exc)
        try:
            sender.send(ProducerFailed(source=name, error=exc))
        except ChannelClosedError:
            logger.warning("Could not report failure of producer '%s'", name)
    else:
        logger.debug("Producer '%s' finished", name)
    finally:
        sender.close()
