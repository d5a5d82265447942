"""Terminal output port, ANSI control sequences, and the session guard.

The render loop talks to the terminal through :class:`TerminalPort`, a
two-method protocol (``write`` and ``flush``).  :class:`StreamTerminal`
adapts any text stream (``sys.stdout`` in production); tests use
:class:`~lapwatch.testing.MockTerminal`.

:func:`terminal_session` is the scoped guard around a stopwatch run.  It
optionally switches a file descriptor into raw mode (``termios``/``tty``,
so Enter and Ctrl+C arrive as bytes instead of being line-buffered or
turned into ``SIGINT``), hides the cursor, and restores both on every
exit path.

Raw mode also disables output post-processing, so every line break the
stopwatch writes is an explicit ``"\\r\\n"``.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from collections.abc import Iterator
from typing import Protocol, TextIO, runtime_checkable

from lapwatch._errors import TerminalUnavailableError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Control sequences
# ---------------------------------------------------------------------------

SAVE_CURSOR = "\x1b7"
RESTORE_CURSOR = "\x1b8"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
NEWLINE = "\r\n"


@runtime_checkable
class TerminalPort(Protocol):
    """Write-side terminal capability used by the render loop."""

    def write(self, text: str) -> None:
        """Write *text* without a trailing newline."""
        ...

    def flush(self) -> None:
        """Push buffered output to the device."""
        ...


class StreamTerminal:
    """Production :class:`TerminalPort` backed by a text stream.

    Write and flush errors (``OSError``, ``ValueError`` on a closed
    stream) propagate to the caller unchanged.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def write(self, text: str) -> None:
        self._stream.write(text)

    def flush(self) -> None:
        self._stream.flush()

    def fileno(self) -> int:
        return self._stream.fileno()

    def isatty(self) -> bool:
        return self._stream.isatty()


@contextlib.contextmanager
def raw_mode(fd: int) -> Iterator[None]:
    """Put *fd* into raw mode for the duration of the block.

    Raises:
        TerminalUnavailableError: If *fd* is not a terminal.
    """
    import termios  # noqa: PLC0415
    import tty  # noqa: PLC0415

    try:
        saved = termios.tcgetattr(fd)
    except termios.error as exc:
        msg = f"File descriptor {fd} is not a terminal"
        raise TerminalUnavailableError(msg) from exc

    tty.setraw(fd)
    logger.debug("Raw mode enabled on fd %d", fd)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        logger.debug("Raw mode restored on fd %d", fd)


@contextlib.contextmanager
def terminal_session(
    terminal: TerminalPort,
    *,
    raw_fd: int | None = None,
) -> Iterator[TerminalPort]:
    """Scoped terminal setup for one stopwatch run.

    On entry: raw mode on *raw_fd* (when given), then hide the cursor.
    On exit (normal return, exception, or cancellation): show the
    cursor, leave raw mode, and move to a fresh line.  Raw mode is left
    even if restoring the cursor fails.

    Args:
        terminal: Output port receiving the cursor sequences.
        raw_fd: Input file descriptor to switch into raw mode, or
            ``None`` to leave the input mode untouched (tests, pipes).

    Yields:
        The *terminal* passed in.
    """
    try:
        with contextlib.ExitStack() as stack:
            if raw_fd is not None:
                stack.enter_context(raw_mode(raw_fd))
            terminal.write(HIDE_CURSOR)
            terminal.flush()
            try:
                yield terminal
            finally:
                terminal.write(SHOW_CURSOR)
                terminal.flush()
    finally:
        terminal.write(NEWLINE)
        terminal.flush()
