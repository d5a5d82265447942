"""Command-line entry point (Typer-based).

Provides :func:`build_cli`, which wraps a :class:`~lapwatch._app.Stopwatch`
in a Typer app exposing ``--version``, ``--tick-interval``,
``--tick-mode``, ``--log-level``, ``--log-format`` and ``--env-file``,
and :func:`main`, the ``lapwatch`` console script.

Runtime errors are echoed to stderr as well as logged: the console log
handler is suppressed while stderr is the stopwatch's own terminal, and
the operator still needs to see why the session ended.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Annotated, get_args

import typer
from pydantic import ValidationError

from lapwatch._settings import LoggingSettings, StopwatchSettings

if TYPE_CHECKING:
    from lapwatch._app import Stopwatch
    from lapwatch._settings import Settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 3

# ---------------------------------------------------------------------------
# Allowed values (extracted from the settings Literal types)
# ---------------------------------------------------------------------------

_VALID_LOG_LEVELS: tuple[str, ...] = get_args(
    LoggingSettings.model_fields["level"].annotation,
)
_VALID_LOG_FORMATS: tuple[str, ...] = get_args(
    LoggingSettings.model_fields["format"].annotation,
)
_VALID_TICK_MODES: tuple[str, ...] = get_args(
    StopwatchSettings.model_fields["tick_mode"].annotation,
)


def _check_choice(value: str | None, valid: tuple[str, ...], option: str) -> None:
    if value is not None and value not in valid:
        raise typer.BadParameter(
            f"Invalid value '{value}'. Choose from: {', '.join(valid)}",
            param_hint=f"'{option}'",
        )


def build_cli(stopwatch: Stopwatch) -> typer.Typer:
    """Construct a Typer CLI around *stopwatch*.

    The returned Typer app exposes a single default command.  When
    invoked it loads settings, applies CLI overrides and runs one
    session.

    Args:
        stopwatch: The application to wrap.

    Returns:
        A configured :class:`typer.Typer` ready to invoke.
    """
    name = stopwatch._name
    version = stopwatch._version
    description = stopwatch._description

    cli = typer.Typer(
        help=f"{name} v{version}: {description}. Enter records a lap, Ctrl+C stops.",
    )

    @cli.callback(invoke_without_command=True)
    def main(
        version_flag: Annotated[
            bool | None,
            typer.Option(
                "--version",
                is_eager=True,
                help="Show version and exit.",
            ),
        ] = None,
        tick_interval: Annotated[
            float | None,
            typer.Option("--tick-interval", help="Seconds between redraws."),
        ] = None,
        tick_mode: Annotated[
            str | None,
            typer.Option("--tick-mode", help="Tick scheduling: fixed or deadline."),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="Override log level."),
        ] = None,
        log_format: Annotated[
            str | None,
            typer.Option("--log-format", help="Override log format."),
        ] = None,
        env_file: Annotated[
            str,
            typer.Option("--env-file", help="Path to .env file."),
        ] = ".env",
    ) -> None:
        # -- version ---------------------------------------------------------
        if version_flag:
            typer.echo(f"{name} v{version}")
            raise typer.Exit()

        # -- validate enum-like options -------------------------------------
        if log_level is not None:
            log_level = log_level.upper()
        if log_format is not None:
            log_format = log_format.lower()
        if tick_mode is not None:
            tick_mode = tick_mode.lower()
        _check_choice(log_level, _VALID_LOG_LEVELS, "--log-level")
        _check_choice(log_format, _VALID_LOG_FORMATS, "--log-format")
        _check_choice(tick_mode, _VALID_TICK_MODES, "--tick-mode")
        if tick_interval is not None and tick_interval <= 0:
            raise typer.BadParameter(
                f"Tick interval must be positive, got {tick_interval}",
                param_hint="'--tick-interval'",
            )

        # -- build settings -------------------------------------------------
        try:
            settings: Settings = stopwatch._settings_class(_env_file=env_file)  # type: ignore[call-arg]
        except ValidationError as exc:
            logger.error("Configuration error: %s", exc)
            typer.echo(f"Configuration error: {exc}", err=True)
            raise SystemExit(EXIT_CONFIG_ERROR) from exc

        # -- apply CLI overrides --------------------------------------------
        logging_overrides = {
            key: value
            for key, value in (("level", log_level), ("format", log_format))
            if value is not None
        }
        if logging_overrides:
            settings.logging = settings.logging.model_copy(update=logging_overrides)

        stopwatch_overrides = {
            key: value
            for key, value in (("tick_interval", tick_interval), ("tick_mode", tick_mode))
            if value is not None
        }
        if stopwatch_overrides:
            settings.stopwatch = settings.stopwatch.model_copy(
                update=stopwatch_overrides,
            )

        # -- run the session ------------------------------------------------
        try:
            stopwatch.run(settings=settings)
        except SystemExit:
            raise
        except Exception as exc:
            logger.error("Runtime error: %s", exc)
            typer.echo(f"Runtime error: {exc}", err=True)
            sys.exit(EXIT_RUNTIME_ERROR)

    return cli


def main() -> None:
    """Console-script entry point for ``lapwatch``."""
    from lapwatch import Stopwatch, __version__

    Stopwatch(version=__version__).cli()
