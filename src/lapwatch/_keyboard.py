"""Keyboard port, raw-byte key decoder, and the stdin adapter.

In raw mode the terminal delivers keystrokes as bytes: Enter is ``\\r``,
Ctrl+<letter> is the control code ``letter - 0x60``, and special keys
(arrows, mouse reports, focus events) arrive as ``ESC [ ... <final>``
sequences.  :func:`decode_keys` turns a chunk of such bytes into
:class:`KeyEvent` values; the stopwatch only ever acts on two of them.

:class:`StdinKeyboard` registers a reader on the event loop instead of
blocking a thread in ``read()``, so awaiting the next key is
cancellable like any other coroutine.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_ESC = "\x1b"
_READ_SIZE = 1024

_CSI_NAMES = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}


@dataclass(frozen=True, slots=True)
class KeyEvent:
    """A single decoded keystroke.

    Attributes:
        key: Lower-case key name, e.g. ``"enter"``, ``"c"``, ``"up"``.
        ctrl: Whether the Control modifier was held.
        alt: Whether the key was prefixed by ``ESC`` (Alt/Meta).
    """

    key: str
    ctrl: bool = False
    alt: bool = False

    @property
    def plain(self) -> bool:
        """True when no modifier is held."""
        return not (self.ctrl or self.alt)


ENTER = KeyEvent("enter")
CTRL_C = KeyEvent("c", ctrl=True)


@runtime_checkable
class KeyboardPort(Protocol):
    """Source of decoded keystrokes."""

    async def read_key(self) -> KeyEvent | None:
        """Wait for the next keystroke.

        Returns:
            The next :class:`KeyEvent`, or ``None`` once input is
            exhausted (end of file).
        """
        ...


def _decode_char(ch: str) -> KeyEvent:
    code = ord(ch)
    if ch in ("\r", "\n"):
        return ENTER
    if ch == "\t":
        return KeyEvent("tab")
    if code == 0x7F:
        return KeyEvent("backspace")
    if code == 0:
        return KeyEvent("space", ctrl=True)
    if code < 0x20:
        return KeyEvent(chr(code + 0x60), ctrl=True)
    if ch == " ":
        return KeyEvent("space")
    return KeyEvent(ch.lower() if ch.isupper() else ch)


def decode_keys(text: str) -> list[KeyEvent]:
    """Decode raw-mode terminal input into key events.

    Args:
        text: Characters read from the terminal (already UTF-8 decoded).

    Returns:
        One :class:`KeyEvent` per keystroke, in input order.  Escape
        sequences collapse into a single event; unrecognised CSI
        sequences (mouse reports, focus changes) become
        ``KeyEvent("unknown")``.
    """
    events: list[KeyEvent] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != _ESC:
            events.append(_decode_char(ch))
            i += 1
            continue

        # ESC on its own, or ESC at the end of the chunk
        if i + 1 >= n:
            events.append(KeyEvent("escape"))
            i += 1
            continue

        nxt = text[i + 1]
        if nxt in ("[", "O"):
            j = i + 2
            while j < n and not ("\x40" <= text[j] <= "\x7e"):
                j += 1
            final = text[j] if j < n else ""
            events.append(KeyEvent(_CSI_NAMES.get(final, "unknown")))
            i = j + 1
            continue

        base = _decode_char(nxt)
        events.append(KeyEvent(base.key, ctrl=base.ctrl, alt=True))
        i += 2
    return events


class StdinKeyboard:
    """Production :class:`KeyboardPort` reading a raw-mode file descriptor.

    The descriptor is watched with :meth:`asyncio.loop.add_reader` on the
    first :meth:`read_key` call; :meth:`close` removes the watcher.  Bytes
    are decoded incrementally so multi-byte characters split across reads
    survive.  Read errors propagate out of :meth:`read_key`.
    """

    def __init__(self, fd: int) -> None:
        self._fd = fd
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending: asyncio.Queue[KeyEvent | BaseException | None] = (
            asyncio.Queue()
        )
        self._loop: asyncio.AbstractEventLoop | None = None
        self._eof = False

    async def read_key(self) -> KeyEvent | None:
        if self._eof and self._pending.empty():
            return None
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
            self._loop.add_reader(self._fd, self._on_readable)
        item = await self._pending.get()
        if isinstance(item, BaseException):
            raise item
        if item is None:
            self._eof = True
        return item

    def close(self) -> None:
        """Stop watching the descriptor.  Idempotent."""
        if self._loop is not None:
            self._loop.remove_reader(self._fd)
            self._loop = None

    def _on_readable(self) -> None:
        try:
            data = os.read(self._fd, _READ_SIZE)
        except OSError as exc:
            self.close()
            self._pending.put_nowait(exc)
            return
        if not data:
            logger.debug("End of keyboard input on fd %d", self._fd)
            self.close()
            self._pending.put_nowait(None)
            return
        for event in decode_keys(self._decoder.decode(data)):
            self._pending.put_nowait(event)
