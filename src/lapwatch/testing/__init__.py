"""Public test-support utilities for lapwatch.

Re-exports test doubles and factories so test suites can import
everything from a single ``lapwatch.testing`` namespace.

Provided symbols:

- :class:`StopwatchHarness` — Stopwatch wired with the doubles below.
- :class:`FakeClock` — deterministic clock for timing tests.
- :class:`MockKeyboard` — scriptable keystroke source.
- :class:`MockTerminal` — terminal that records writes.
- :func:`make_settings` — factory for ``Settings`` without ``.env`` files.
"""

from lapwatch.testing._clock import FakeClock
from lapwatch.testing._harness import StopwatchHarness
from lapwatch.testing._keyboard import MockKeyboard
from lapwatch.testing._settings import make_settings
from lapwatch.testing._terminal import MockTerminal

__all__ = [
    "FakeClock",
    "MockKeyboard",
    "MockTerminal",
    "StopwatchHarness",
    "make_settings",
]
