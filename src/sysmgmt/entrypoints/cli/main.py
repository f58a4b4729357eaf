"""SYSMGMT CLI entry point.

Defines the top-level ``sysmgmt`` command (via Click-Extra) and registers the
subcommand groups:

- ``sysmgmt db``: forward-only database management (upgrade/current/heads/history/status).
- ``sysmgmt health``: register external APIs, check them, watch them.

The resolved `Settings` for ``--profile`` are stored on the Click context
object and read by the subcommands.

Examples
    $ sysmgmt --version
    $ sysmgmt --profile dev db upgrade
    $ sysmgmt -v health check --all
"""

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from platformdirs import user_log_dir

from sysmgmt import __version__, config
from sysmgmt.logging import config_console_handler, config_flight_recorder, log_startup

from .db import db as db_group
from .health import health as health_group
from .helpers.log_level_parser import parse_log_level

if TYPE_CHECKING:
    from logging import Handler

logger = logging.getLogger(__name__)


HELP = """SYSMGMT command-line interface.

    SYSMGMT monitors the external APIs a system depends on: it probes each
    registered API, classifies the answer (healthy, degraded, unhealthy,
    timeout), keeps a history of results and a short-lived list of APIs that
    are currently failing.
    """


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
)
@click.option(
    "--profile",
    "profile",
    type=click.Choice(sorted(config.PROFILES)),
    envvar=config.PROFILE_ENV_VAR,
    default=config.DEFAULT_PROFILE,
    show_default=True,
    show_envvar=True,
    help="Configuration profile. SYSMGMT_<SETTING> variables override its values.",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    default=0,
    help="Lower the console level one step below WARNING per repetition.",
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    default=0,
    help="Raise the console level one step above WARNING per repetition.",
)
@click.option(
    "--debug/--no-debug",
    is_flag=True,
    default=False,
    help="Debug console output: DEBUG level, timestamps, logger names, source paths.",
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(user_log_dir("sysmgmt", appauthor=False, ensure_exists=True)) / "latest.log",
    envvar="SYSMGMT_LOG_PATH",
    show_default=True,
    show_envvar=True,
    help="File the flight recorder writes to.",
)
@click.option(
    "--flight-recorder-capacity",
    type=int,
    default=2000,
    hidden=True,
    envvar="SYSMGMT_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Number of log records kept by the flight recorder.",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    is_flag=True,
    default=True,
    envvar="SYSMGMT_FLIGHT_RECORDER",
    show_envvar=True,
    help=(
        "Keep the last N DEBUG records in memory (independent of -v/-q) and write "
        "them to --log-path when a WARNING or ERROR is logged, or on exit with "
        "--force-flush."
    ),
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    is_flag=True,
    default=False,
    envvar="SYSMGMT_FORCE_FLUSH_FLIGHT_RECORDER",
    show_default=True,
    show_envvar=True,
    help="Write the flight recorder buffer to --log-path on exit even without warnings.",
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    envvar="SYSMGMT_LOGGER_LEVELS",
    default=("sqlalchemy=WARNING", "alembic=WARNING", "httpx=WARNING"),
    show_default=True,
    show_envvar=True,
    help=(
        "Minimum level for a logger (NAME=LEVEL), applied to console and flight "
        "recorder alike. Repeatable, or a comma/space list in SYSMGMT_LOGGER_LEVELS."
    ),
)
@clickx.pass_context
def sysmgmt(  # pylint: disable=too-many-arguments, too-many-locals, too-many-positional-arguments
    ctx: click.Context,
    profile: str,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    logger_levels: dict[str, int],
) -> None:
    """SYSMGMT command-line interface."""

    try:
        settings = config.load_settings(profile, environ=os.environ)
    except config.ConfigError as e:
        raise click.ClickException(str(e)) from e
    ctx.obj = settings

    level = logging.WARNING - (10 * verbose_count) + (10 * quiet_count)
    level = max(logging.DEBUG, min(logging.CRITICAL, level))

    use_color = ctx.color is not False
    handlers: list[Handler] = [
        config_console_handler(level=level, debug_mode=debug, color=use_color)
    ]
    if flight_recorder:
        handlers.append(
            config_flight_recorder(
                path=log_path,
                capacity=flight_recorder_capacity,
                flush_on_close=force_flush_flight_recorder,
            )
        )

    # root captures everything; handlers filter
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    for name, lvl in logger_levels.items():
        logging.getLogger(name).setLevel(lvl)

    log_startup(
        logger,
        app_version=__version__,
        settings=settings,
        level=level,
        handlers=handlers,
        log_path=log_path if flight_recorder else None,
        flight_capacity=flight_recorder_capacity if flight_recorder else None,
        force_flush_fr=force_flush_flight_recorder,
        logger_levels=logger_levels,
    )

    ctx.call_on_close(logging.shutdown)


sysmgmt.add_command(db_group)
sysmgmt.add_command(health_group)
