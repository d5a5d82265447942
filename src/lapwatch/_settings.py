"""Application configuration via pydantic-settings.

Configuration is loaded from environment variables and/or ``.env``
files.  All variables carry the ``LAPWATCH_`` prefix and nested models
use ``__`` as the delimiter, e.g. ``LAPWATCH_STOPWATCH__TICK_INTERVAL=0.1``.

The schema covers two concerns:

* **Stopwatch** — tick cadence, tick scheduling, producer-failure policy.
* **Logging** — level, format, optional file sink, rotation.

Every default reproduces the plain stopwatch behaviour, so running with
no configuration at all is the normal case.

All durations are in **seconds**.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# -------------------------------------------------------------------
# Sub-models (BaseModel, not BaseSettings; nested via composition)
# -------------------------------------------------------------------


class StopwatchSettings(BaseModel):
    """Stopwatch timing and supervision configuration.

    Environment variables (with ``__`` nesting)::

        LAPWATCH_STOPWATCH__TICK_INTERVAL=0.05
        LAPWATCH_STOPWATCH__TICK_MODE=deadline
        LAPWATCH_STOPWATCH__PRODUCER_FAILURE=degrade
    """

    tick_interval: Annotated[float, Field(gt=0)] = Field(
        default=0.05,
        description="Seconds between display refreshes.",
    )
    tick_mode: Literal["fixed", "deadline"] = Field(
        default="fixed",
        description=(
            "'fixed' sleeps tick_interval after every tick and accepts "
            "drift; 'deadline' schedules ticks against a monotonic "
            "deadline so drift does not accumulate."
        ),
    )
    producer_failure: Literal["fail", "degrade"] = Field(
        default="fail",
        description=(
            "What the render loop does when the ticker or input "
            "producer dies. 'fail' stops the stopwatch with an error; "
            "'degrade' logs a warning and keeps running."
        ),
    )


class LoggingSettings(BaseModel):
    """Logging configuration.

    When ``file`` is set, logs are also written to a rotating file
    (size-based rotation, ``backup_count`` generations kept).

    The ``format`` field selects the output format:

    - ``"json"`` (default) — structured JSON lines.
    - ``"text"`` — human-readable timestamped lines.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level.",
    )
    format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format, 'json' or 'text'.",
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path. ``None`` means no file sink.",
    )
    max_file_size_mb: Annotated[int, Field(ge=1)] = Field(
        default=10,
        description=(
            "Maximum log file size in megabytes before rotation. "
            "Only applies when ``file`` is set."
        ),
    )
    backup_count: Annotated[int, Field(ge=0)] = Field(
        default=3,
        description="Number of rotated log files to keep.",
    )


# -------------------------------------------------------------------
# Root settings
# -------------------------------------------------------------------


class Settings(BaseSettings):
    """Root settings for lapwatch.

    Example ``.env``::

        LAPWATCH_STOPWATCH__TICK_INTERVAL=0.1
        LAPWATCH_LOGGING__LEVEL=DEBUG
        LAPWATCH_LOGGING__FILE=/tmp/lapwatch.log
    """

    model_config = SettingsConfigDict(
        env_prefix="LAPWATCH_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    stopwatch: StopwatchSettings = Field(
        default_factory=StopwatchSettings,
        description="Stopwatch timing configuration.",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration.",
    )
