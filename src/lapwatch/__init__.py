"""lapwatch.

An interactive terminal stopwatch with lap splits.
"""

from importlib.metadata import PackageNotFoundError, version

from lapwatch._app import Stopwatch
from lapwatch._channel import EventChannel, Sender
from lapwatch._clock import (
    ClockPort,
    SystemClock,
    elapsed,
    format_duration,
    lap_delta,
)
from lapwatch._errors import (
    ChannelClosedError,
    LapwatchError,
    ProducerFailedError,
    TerminalUnavailableError,
)
from lapwatch._events import Event, ProducerFailed, TimerEvent
from lapwatch._keyboard import KeyboardPort, KeyEvent, StdinKeyboard, decode_keys
from lapwatch._logging import JsonFormatter, configure_logging
from lapwatch._producers import run_input, run_ticker, supervise, translate_key
from lapwatch._render import RenderLoop, StopwatchState
from lapwatch._settings import LoggingSettings, Settings, StopwatchSettings
from lapwatch._terminal import StreamTerminal, TerminalPort, terminal_session

try:
    __version__ = version("lapwatch")
except PackageNotFoundError:
    # Last resort fallback for source checkouts without metadata
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # App
    "Stopwatch",
    # Channel
    "Event",
    "EventChannel",
    "ProducerFailed",
    "Sender",
    "TimerEvent",
    # Clock
    "ClockPort",
    "SystemClock",
    "elapsed",
    "format_duration",
    "lap_delta",
    # Errors
    "ChannelClosedError",
    "LapwatchError",
    "ProducerFailedError",
    "TerminalUnavailableError",
    # Keyboard
    "KeyEvent",
    "KeyboardPort",
    "StdinKeyboard",
    "decode_keys",
    # Logging
    "JsonFormatter",
    "configure_logging",
    # Producers
    "run_input",
    "run_ticker",
    "supervise",
    "translate_key",
    # Render
    "RenderLoop",
    "StopwatchState",
    # Settings
    "LoggingSettings",
    "Settings",
    "StopwatchSettings",
    # Terminal
    "StreamTerminal",
    "TerminalPort",
    "terminal_session",
]
