"""Integration tests — full session validation.

Validates complete stopwatch sessions: start → ticks redraw the status
line → Enter records laps → Ctrl+C stops → terminal restored.

Test Techniques Used:
    - Integration Testing: end-to-end sessions via StopwatchHarness.
    - State-based Testing: verify rendered output and final state.
    - Real I/O: raw bytes through an OS pipe into StdinKeyboard.
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from lapwatch._app import Stopwatch
from lapwatch._keyboard import StdinKeyboard
from lapwatch._settings import LoggingSettings, StopwatchSettings
from lapwatch._terminal import HIDE_CURSOR, NEWLINE, SHOW_CURSOR
from lapwatch.testing import FakeClock, MockTerminal, StopwatchHarness, make_settings

pytestmark = pytest.mark.integration


@pytest.fixture
def pipe() -> Iterator[tuple[int, int]]:
    """OS pipe standing in for a raw-mode TTY."""
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    for fd in (read_fd, write_fd):
        try:
            os.close(fd)
        except OSError:
            pass


# ---------------------------------------------------------------------------
# TestFullSession
# ---------------------------------------------------------------------------


class TestFullSession:
    """Scripted sessions with the fake clock driving elapsed time."""

    async def test_laps_with_elapsed_time(self) -> None:
        harness = StopwatchHarness.create(
            stopwatch=StopwatchSettings(tick_interval=0.005),
        )

        async def operator() -> None:
            await asyncio.sleep(0.02)
            harness.clock.advance(1.25)
            harness.keyboard.press_enter()
            await asyncio.sleep(0.02)
            harness.clock.advance(2.5)
            harness.keyboard.press_enter()
            await asyncio.sleep(0.02)
            harness.keyboard.press_ctrl_c()

        driver = asyncio.create_task(operator())
        state = await asyncio.wait_for(harness.run(), timeout=2)
        await driver

        assert state.round == 2
        assert state.laps == [1.25, 2.5]
        assert harness.terminal.lap_lines == [
            "Lap:   00:01.2s ",
            "Lap:   00:02.5s ",
        ]
        assert harness.terminal.status_lines[0] == "   0:  00:00.0s"
        assert harness.terminal.status_lines[-1] == "   2:  00:03.7s"

        output = harness.terminal.output
        assert output.startswith(HIDE_CURSOR)
        assert output.endswith(SHOW_CURSOR + NEWLINE)

    async def test_deadline_tick_mode_session(self) -> None:
        harness = StopwatchHarness.create(
            stopwatch=StopwatchSettings(tick_interval=0.005, tick_mode="deadline"),
        )

        async def operator() -> None:
            await asyncio.sleep(0.03)
            harness.keyboard.press_enter()
            harness.keyboard.press_ctrl_c()

        driver = asyncio.create_task(operator())
        state = await asyncio.wait_for(harness.run(), timeout=2)
        await driver

        assert state.round == 1
        assert len(harness.terminal.status_lines) >= 1

    async def test_keys_after_stop_are_ignored(self) -> None:
        harness = StopwatchHarness.create()
        harness.keyboard.press_ctrl_c()
        harness.keyboard.press_enter()
        harness.keyboard.press_enter()

        state = await asyncio.wait_for(harness.run(), timeout=2)

        assert state.round == 0
        assert harness.terminal.lap_lines == []


# ---------------------------------------------------------------------------
# TestRawInput
# ---------------------------------------------------------------------------


class TestRawInput:
    """Raw terminal bytes decoded by StdinKeyboard."""

    async def test_enter_and_ctrl_c_bytes(self, pipe: tuple[int, int]) -> None:
        read_fd, write_fd = pipe
        keyboard = StdinKeyboard(read_fd)
        terminal = MockTerminal()
        # Arrow key and a plain letter are ignored.
        os.write(write_fd, b"\r\x1b[Ax\r\x03")

        try:
            state = await asyncio.wait_for(
                Stopwatch()._run_async(
                    settings=make_settings(),
                    clock=FakeClock(),
                    keyboard=keyboard,
                    terminal=terminal,
                    handle_signals=False,
                ),
                timeout=2,
            )
        finally:
            keyboard.close()

        assert state.round == 2
        assert len(terminal.lap_lines) == 2


# ---------------------------------------------------------------------------
# TestLogFile
# ---------------------------------------------------------------------------


class TestLogFile:
    """Structured logs reach the configured file sink."""

    async def test_session_logged_as_ndjson(self, tmp_path: Path) -> None:
        log_file = tmp_path / "lapwatch.log"
        harness = StopwatchHarness.create(
            logging=LoggingSettings(file=str(log_file)),
        )
        harness.keyboard.press_enter()
        harness.keyboard.press_ctrl_c()

        await asyncio.wait_for(harness.run(), timeout=2)

        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        messages = [record["message"] for record in records]
        assert "Stopwatch started" in messages
        assert "Stopwatch stopped after 1 lap(s)" in messages
        assert all(record["service"] == "testwatch" for record in records)
