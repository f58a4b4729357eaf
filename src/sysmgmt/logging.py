"""Logging setup for the SYSMGMT CLI.

Console output goes through Rich; an optional in-memory "flight recorder"
keeps recent DEBUG records and dumps them to a file when something goes
wrong. Records from libraries (httpx, sqlalchemy, alembic, ...) are tagged
with a short prefix on the console.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

import alembic
import httpx
import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

    from sysmgmt.config import Settings

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "sysmgmt"

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]

FLIGHT_RECORDER_FORMAT = (
    "[%(asctime)s] [%(process)d:%(threadName)s] %(levelname)s %(name)s:%(lineno)d: %(message)s"
)


class ThirdPartyPrefixFilter(logging.Filter):
    """Set ``record.prefix`` to ``"[<top-level package>]"`` for non-SYSMGMT loggers.

    SYSMGMT's own records get an empty prefix. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        top_level = record.name.split(".")[0]
        record.prefix = "" if top_level == PROJECT_PREFIX else f"[{top_level}]"
        return True


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Build the stderr `RichHandler`.

    Args:
        level: Minimum console level; forced to DEBUG in `debug_mode`.
        debug_mode: Show timestamps, logger names and source paths.
        color: False disables colour (mirrors Click-Extra's ``--no-color``).
    """
    color_system: ColorSystem | None = "auto" if color else None
    console = Console(color_system=color_system, stderr=True)

    if debug_mode:
        level = logging.DEBUG

    handler = RichHandler(
        level=level,
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )

    if debug_mode:
        handler.setFormatter(logging.Formatter(fmt="%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter(fmt="%(prefix)s %(message)s"))
        handler.addFilter(ThirdPartyPrefixFilter())

    return handler


def config_flight_recorder(
    path: Path,
    capacity: int = 2000,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
) -> MemoryHandler:
    """Build the flight recorder: a `MemoryHandler` in front of a file.

    The buffer holds up to `capacity` records and is written to `path` when a
    record at `flush_level` or above arrives, or on close if `flush_on_close`.
    """
    file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FLIGHT_RECORDER_FORMAT))

    return MemoryHandler(
        capacity=capacity,
        flushLevel=flush_level,
        target=file_handler,
        flushOnClose=flush_on_close,
    )


def log_startup(  # pylint: disable=too-many-arguments
    logger: Logger,
    *,
    app_version: str,
    settings: Settings,
    level: int,
    handlers: list[logging.Handler],
    log_path: Path | None,
    flight_capacity: int | None,
    force_flush_fr: bool,
    logger_levels: dict[str, int],
) -> None:
    """Log a one-line INFO summary and DEBUG diagnostics at startup.

    Args:
        logger: Logger to emit on.
        app_version: SYSMGMT version.
        settings: Resolved settings; profile and backend are reported.
        level: Effective console level.
        handlers: Handlers attached to the root logger.
        log_path: Flight recorder file, if any.
        flight_capacity: Flight recorder capacity, or None when it is off.
        force_flush_fr: Whether the flight recorder flushes on close.
        logger_levels: Per-logger level overrides.
    """
    logger.info(
        "SYSMGMT %s (profile %s), console=%s, flight-recorder=%s",
        app_version,
        settings.profile,
        logging.getLevelName(level),
        "OFF" if flight_capacity is None else "ON",
    )

    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("PID: %s", os.getpid())
    logger.debug("CWD: %s", Path.cwd())
    logger.debug(
        "Libraries: alembic=%s sqlalchemy=%s httpx=%s",
        alembic.__version__,
        sqlalchemy.__version__,
        httpx.__version__,
    )
    logger.debug(
        "Repositories: %s, request timeout: %ss, unhealthy TTL: %ss",
        settings.repository_backend,
        settings.request_timeout_s,
        settings.unhealthy_ttl_s,
    )
    logger.debug("Handlers: %s", [type(h).__name__ for h in handlers])
    if flight_capacity is not None:
        logger.debug(
            "Flight recorder: path=%s, capacity=%s, flush_on_close=%s",
            log_path if log_path else "<none>",
            flight_capacity,
            force_flush_fr,
        )
    logger.debug(
        "Per-logger overrides: %s",
        {name: logging.getLevelName(lvl) for name, lvl in logger_levels.items()} or "<none>",
    )
