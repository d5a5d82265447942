"""Pytest plugin providing shared test fixtures for lapwatch.

Registers ``fake_clock``, ``mock_terminal``, ``mock_keyboard`` and
``event_channel`` fixtures.  Discovered through the ``pytest11`` entry
point.

Imports of lapwatch modules are deferred into the fixture bodies so
that loading the plugin does not import lapwatch before ``pytest-cov``
starts tracing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from lapwatch._channel import EventChannel
    from lapwatch.testing._clock import FakeClock
    from lapwatch.testing._keyboard import MockKeyboard
    from lapwatch.testing._terminal import MockTerminal


@pytest.fixture
def fake_clock() -> FakeClock:
    """FakeClock starting at time 0."""
    from lapwatch.testing._clock import FakeClock

    return FakeClock()


@pytest.fixture
def mock_terminal() -> MockTerminal:
    """Fresh MockTerminal for each test."""
    from lapwatch.testing._terminal import MockTerminal

    return MockTerminal()


@pytest.fixture
def mock_keyboard() -> MockKeyboard:
    """Fresh MockKeyboard for each test."""
    from lapwatch.testing._keyboard import MockKeyboard

    return MockKeyboard()


@pytest.fixture
def event_channel() -> EventChannel:
    """Fresh, open EventChannel."""
    from lapwatch._channel import EventChannel

    return EventChannel()
