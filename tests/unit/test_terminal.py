"""Unit tests for lapwatch._terminal — output port and session guard.

Test Techniques Used:
    - Protocol Conformance: StreamTerminal / MockTerminal vs TerminalPort
    - Specification-based Testing: cursor sequence ordering
    - Error Condition Testing: restoration on exceptions, non-TTY fds
"""

from __future__ import annotations

import io
import os
from unittest.mock import patch

import pytest

from lapwatch._errors import TerminalUnavailableError
from lapwatch._terminal import (
    HIDE_CURSOR,
    NEWLINE,
    SHOW_CURSOR,
    StreamTerminal,
    TerminalPort,
    raw_mode,
    terminal_session,
)
from lapwatch.testing import MockTerminal


class TestStreamTerminal:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(StreamTerminal(io.StringIO()), TerminalPort)

    def test_writes_to_stream(self) -> None:
        stream = io.StringIO()
        terminal = StreamTerminal(stream)

        terminal.write("abc")
        terminal.flush()

        assert stream.getvalue() == "abc"

    def test_write_to_closed_stream_raises(self) -> None:
        stream = io.StringIO()
        stream.close()

        with pytest.raises(ValueError):
            StreamTerminal(stream).write("x")

    def test_isatty_delegates(self) -> None:
        assert StreamTerminal(io.StringIO()).isatty() is False


class TestTerminalSession:
    """terminal_session() guard.

    Technique: Specification-based Testing — exact sequence order.
    """

    def test_hides_then_shows_cursor(self, mock_terminal: MockTerminal) -> None:
        with terminal_session(mock_terminal) as terminal:
            terminal.write("body")

        assert mock_terminal.writes == [HIDE_CURSOR, "body", SHOW_CURSOR, NEWLINE]

    def test_restores_on_exception(self, mock_terminal: MockTerminal) -> None:
        with pytest.raises(RuntimeError), terminal_session(mock_terminal):
            raise RuntimeError("boom")

        assert mock_terminal.writes == [HIDE_CURSOR, SHOW_CURSOR, NEWLINE]

    def test_raw_mode_entered_and_left(self, mock_terminal: MockTerminal) -> None:
        calls: list[str] = []

        class _Recorder:
            def __init__(self, fd: int) -> None:
                calls.append(f"enter:{fd}")

            def __enter__(self) -> None:
                return None

            def __exit__(self, *exc_info: object) -> None:
                calls.append("exit")

        with (
            patch("lapwatch._terminal.raw_mode", _Recorder),
            terminal_session(mock_terminal, raw_fd=7),
        ):
            calls.append("body")

        assert calls == ["enter:7", "body", "exit"]


class TestRawMode:
    def test_non_tty_raises(self) -> None:
        read_fd, write_fd = os.pipe()
        try:
            with pytest.raises(TerminalUnavailableError), raw_mode(read_fd):
                pass
        finally:
            os.close(read_fd)
            os.close(write_fd)

    def test_restores_attributes(self) -> None:
        saved = ["attrs"]
        with (
            patch("termios.tcgetattr", return_value=saved) as tcgetattr,
            patch("termios.tcsetattr") as tcsetattr,
            patch("tty.setraw") as setraw,
        ):
            with raw_mode(3):
                setraw.assert_called_once_with(3)
                tcsetattr.assert_not_called()

        tcgetattr.assert_called_once_with(3)
        tcsetattr.assert_called_once()
        assert tcsetattr.call_args.args[0] == 3
        assert tcsetattr.call_args.args[2] is saved
