"""Stopwatch orchestrator.

:class:`Stopwatch` is the composition root.  It wires settings, logging,
the event channel, the two supervised producers and the render loop,
runs one session, and tears everything down again.

Typical usage::

    from lapwatch import Stopwatch

    Stopwatch().run()

Lifecycle of :meth:`Stopwatch._run_async`:

1. Bootstrap (settings, logging, clock, terminal and keyboard adapters).
2. Enter the terminal session (raw mode, hidden cursor).
3. Start the ticker and input producers as supervised tasks and install
   SIGTERM/SIGINT handlers that send ``STOP``.
4. Run the render loop until it returns.
5. Tear down (cancel producers, remove signal handlers, leave the
   terminal session).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
from typing import Final

from lapwatch._channel import EventChannel, Sender
from lapwatch._clock import ClockPort, SystemClock
from lapwatch._errors import ChannelClosedError, TerminalUnavailableError
from lapwatch._events import TimerEvent
from lapwatch._keyboard import KeyboardPort, StdinKeyboard
from lapwatch._logging import configure_logging
from lapwatch._producers import run_input, run_ticker, supervise
from lapwatch._render import RenderLoop, StopwatchState
from lapwatch._settings import Settings
from lapwatch._terminal import StreamTerminal, TerminalPort, terminal_session

logger = logging.getLogger(__name__)

_STOP_SIGNALS: Final = (signal.SIGTERM, signal.SIGINT)


class Stopwatch:
    """Interactive terminal stopwatch application.

    Args:
        name: Application name, used in logs and CLI output.
        version: Application version string.
        description: Short description for CLI help text.
        settings_class: Settings class to instantiate at startup.
    """

    def __init__(
        self,
        name: str = "lapwatch",
        version: str = "0.0.0",
        *,
        description: str = "terminal stopwatch with lap splits",
        settings_class: type[Settings] = Settings,
    ) -> None:
        self._name = name
        self._version = version
        self._description = description
        self._settings_class = settings_class

    # --- Entrypoints -------------------------------------------------------

    def run(
        self,
        *,
        settings: Settings | None = None,
        clock: ClockPort | None = None,
        keyboard: KeyboardPort | None = None,
        terminal: TerminalPort | None = None,
        handle_signals: bool = True,
    ) -> StopwatchState | None:
        """Run one session (blocking, synchronous entrypoint).

        All parameters are optional and intended for programmatic or
        test use.

        Args:
            settings: Override settings (skip env-file loading).
            clock: Override clock (e.g. ``FakeClock`` for tests).
            keyboard: Override keystroke source.  When ``None``, stdin
                is read in raw mode.
            terminal: Override output port.  When ``None``, stdout is
                used.
            handle_signals: Translate SIGTERM/SIGINT into ``STOP``.

        Returns:
            The final stopwatch state, or ``None`` if interrupted by
            ``KeyboardInterrupt`` before the render loop returned.
        """
        with contextlib.suppress(KeyboardInterrupt):
            return asyncio.run(
                self._run_async(
                    settings=settings,
                    clock=clock,
                    keyboard=keyboard,
                    terminal=terminal,
                    handle_signals=handle_signals,
                ),
            )
        return None

    def cli(self) -> None:
        """Run with CLI argument parsing.

        See Also:
            :func:`lapwatch._cli.build_cli`.
        """
        from lapwatch._cli import build_cli

        cli = build_cli(self)
        cli(standalone_mode=True)

    # --- Lifecycle ---------------------------------------------------------

    async def _run_async(
        self,
        *,
        settings: Settings | None = None,
        clock: ClockPort | None = None,
        keyboard: KeyboardPort | None = None,
        terminal: TerminalPort | None = None,
        handle_signals: bool = True,
    ) -> StopwatchState:
        """Async orchestration of one stopwatch session."""
        # --- Phase 1: Bootstrap ---
        resolved_settings = settings if settings is not None else self._settings_class()
        configure_logging(
            resolved_settings.logging,
            service=self._name,
            version=self._version,
        )
        resolved_clock = clock if clock is not None else SystemClock()
        channel = EventChannel()
        stopwatch_settings = resolved_settings.stopwatch

        with contextlib.ExitStack() as stack:
            terminal, keyboard, raw_fd = self._resolve_io(terminal, keyboard, stack)

            # --- Phase 2: Terminal session ---
            stack.enter_context(terminal_session(terminal, raw_fd=raw_fd))

            # --- Phase 3: Producers ---
            tasks = self._start_producers(
                channel,
                keyboard,
                resolved_clock,
                resolved_settings,
            )
            signal_sender = (
                self._install_signal_handlers(channel) if handle_signals else None
            )

            # --- Phase 4: Render ---
            render_loop = RenderLoop(
                channel,
                terminal,
                resolved_clock,
                producer_failure=stopwatch_settings.producer_failure,
            )
            try:
                state = await render_loop.run()
            finally:
                # --- Phase 5: Tear down ---
                if signal_sender is not None:
                    self._remove_signal_handlers(signal_sender)
                channel.close()
                await self._cancel_tasks(tasks)

        logger.info("Shutdown complete")
        return state

    # --- _run_async helpers ------------------------------------------------

    @staticmethod
    def _resolve_io(
        terminal: TerminalPort | None,
        keyboard: KeyboardPort | None,
        stack: contextlib.ExitStack,
    ) -> tuple[TerminalPort, KeyboardPort, int | None]:
        """Return the injected adapters, or build the stdio ones.

        The stdin keyboard is only created together with raw mode, and
        both require real terminals.

        Raises:
            TerminalUnavailableError: If a stdio adapter is needed and
                the stream is not a TTY.
        """
        if terminal is None:
            if not sys.stdout.isatty():
                msg = "stdout is not a terminal"
                raise TerminalUnavailableError(msg)
            terminal = StreamTerminal(sys.stdout)

        raw_fd: int | None = None
        if keyboard is None:
            if not sys.stdin.isatty():
                msg = "stdin is not a terminal"
                raise TerminalUnavailableError(msg)
            raw_fd = sys.stdin.fileno()
            stdin_keyboard = StdinKeyboard(raw_fd)
            stack.callback(stdin_keyboard.close)
            keyboard = stdin_keyboard

        return terminal, keyboard, raw_fd

    @staticmethod
    def _start_producers(
        channel: EventChannel,
        keyboard: KeyboardPort,
        clock: ClockPort,
        settings: Settings,
    ) -> list[asyncio.Task[None]]:
        """Create supervised tasks for the ticker and input producers."""
        stopwatch_settings = settings.stopwatch
        ticker_sender = channel.sender("ticker")
        input_sender = channel.sender("input")
        return [
            asyncio.create_task(
                supervise(
                    "ticker",
                    run_ticker(
                        ticker_sender,
                        stopwatch_settings.tick_interval,
                        mode=stopwatch_settings.tick_mode,
                        clock=clock,
                    ),
                    ticker_sender,
                ),
                name="lapwatch-ticker",
            ),
            asyncio.create_task(
                supervise("input", run_input(input_sender, keyboard), input_sender),
                name="lapwatch-input",
            ),
        ]

    @staticmethod
    def _install_signal_handlers(channel: EventChannel) -> Sender:
        """Route SIGTERM/SIGINT into the channel as ``STOP``.

        Returns the sender owned by the handlers.
        """
        sender = channel.sender("signals")
        loop = asyncio.get_running_loop()
        for sig in _STOP_SIGNALS:
            loop.add_signal_handler(sig, _send_stop, sender, sig)
        return sender

    @staticmethod
    def _remove_signal_handlers(sender: Sender) -> None:
        loop = asyncio.get_running_loop()
        for sig in _STOP_SIGNALS:
            loop.remove_signal_handler(sig)
        sender.close()

    @staticmethod
    async def _cancel_tasks(tasks: list[asyncio.Task[None]]) -> None:
        """Cancel producer tasks and wait for them to finish."""
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception) and not isinstance(
                result,
                asyncio.CancelledError,
            ):
                logger.error("Producer error during shutdown: %s", result)


def _send_stop(sender: Sender, sig: signal.Signals) -> None:
    logger.info("Received %s, stopping", sig.name)
    with contextlib.suppress(ChannelClosedError):
        sender.send(TimerEvent.STOP)
