"""Exception hierarchy for lapwatch.

Every error the stopwatch raises on purpose derives from
:class:`LapwatchError`.  Terminal write and flush failures are *not*
wrapped: they surface as the underlying :class:`OSError` so the CLI
reports the real cause.

Failure semantics:

- **Channel closed** — fatal to the producer that hit it.  The
  producer supervisor logs it; nothing else is affected.
- **Producer failed** — raised by the render loop when a producer
  dies and the ``producer_failure`` policy is ``"fail"``.
- **Terminal unavailable** — stdin or stdout is not an interactive
  terminal, so raw keystroke mode cannot be entered.
"""

from __future__ import annotations


class LapwatchError(Exception):
    """Base class for lapwatch errors."""


class ChannelClosedError(LapwatchError):
    """Raised when sending on a closed channel or a closed sender."""


class ProducerFailedError(LapwatchError):
    """A supervised producer stopped with an error.

    The producer's original exception is chained as ``__cause__``.

    Args:
        source: Name of the producer that failed (``"ticker"``,
            ``"input"``).
    """

    def __init__(self, source: str) -> None:
        super().__init__(f"Producer '{source}' failed")
        self.source = source


class TerminalUnavailableError(LapwatchError):
    """Raised when the real terminal adapters are used without a TTY."""
