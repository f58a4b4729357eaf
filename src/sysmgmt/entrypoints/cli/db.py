"""SYSMGMT DB CLI: forward-only Alembic wrappers.

Only forward operations are exposed (``upgrade``, plus read-only queries);
``downgrade`` and ``stamp`` are left out on purpose. Alembic output goes to
stdout, human-oriented notices to stderr.

The database URL is the ``db_url`` of the active profile, overridable with
``SYSMGMT_DB_URL``. A missing URL, an unparsable one, or an unreachable
database is reported as a ``ClickException`` with guidance.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import text
from sqlalchemy.exc import ArgumentError, OperationalError

from sysmgmt import config
from sysmgmt.infrastructure.db.engine import make_engine

from .helpers import error, sanitize_url, success, warn

if TYPE_CHECKING:
    from alembic.config import Config
    from sqlalchemy.engine import Engine

MISSING_DB_URL_MSG = (
    "No database URL is configured for this profile.\n\n"
    "Set SYSMGMT_DB_URL before running this command, e.g.:\n"
    "  export SYSMGMT_DB_URL='sqlite+pysqlite:///sysmgmt.db'\n"
    "  or in PowerShell:\n"
    "  $env:SYSMGMT_DB_URL='sqlite+pysqlite:///sysmgmt.db'"
)

INVALID_URL_FORMAT_MSG = "The configured database URL is not a valid SQLAlchemy URL."

CANNOT_CONNECT_MSG = (
    "A database URL is configured, but the database is not reachable.\n"
    "Please ensure the database is running and the URL is correct."
)

UPGRADE_SCHEMA_WARNING = (
    "This will upgrade the database schema to the latest version.\n"
    "Please ensure you have a backup before proceeding."
)

UPGRADE_SCHEMA_INSTRUCTIONS = "Run 'sysmgmt db upgrade' to update the schema."

VERBOSE_OPTION = click.option(
    "--verbose", "-v", "verbose", is_flag=True, help="Show alembic's more verbose output."
)


def _check_connection(url: str) -> None:
    with make_engine(url).connect() as conn:
        conn.execute(text("SELECT 1"))  # pragma: no mutate


def resolve_db_url(settings: config.Settings) -> str:
    """Return the profile's database URL after checking it can be reached.

    Raises:
        click.ClickException: With guidance when the URL is missing, invalid
            or unreachable.
    """
    try:
        url = settings.require_db_url()
    except config.DatabaseUrlNotSetError as e:
        raise click.ClickException(MISSING_DB_URL_MSG) from e
    try:
        _check_connection(url)
    except OperationalError as e:
        raise click.ClickException(CANNOT_CONNECT_MSG) from e
    except ArgumentError as e:
        raise click.ClickException(INVALID_URL_FORMAT_MSG) from e
    return url


@click.group(cls=clickx.ExtraGroup)
def db() -> None:
    """Database management commands."""


@db.command()
@VERBOSE_OPTION
@click.pass_obj
def current(settings: config.Settings, verbose: bool) -> None:
    """Show current DB revision."""
    cfg = config.build_alembic_config(db_url=resolve_db_url(settings), stdout=sys.stdout)
    command.current(cfg, verbose=verbose)


@db.command()
@VERBOSE_OPTION
def heads(verbose: bool) -> None:
    """Show available head revisions."""
    command.heads(config.build_alembic_config(stdout=sys.stdout), verbose=verbose)


@db.command()
@VERBOSE_OPTION
@click.option(
    "--indicate-current",
    "-i",
    "indicate_current",
    is_flag=True,
    help="Indicate the current revision.",
)
@click.pass_obj
def history(settings: config.Settings, verbose: bool, indicate_current: bool) -> None:
    """Show revision history."""
    url = resolve_db_url(settings) if indicate_current else None
    cfg = config.build_alembic_config(db_url=url, stdout=sys.stdout)
    command.history(cfg, verbose=verbose, indicate_current=indicate_current)


@db.command()
@click.option("--sql", is_flag=True, help="Generate SQL without executing.")
@click.option("--force", is_flag=True, help="Upgrade without confirmation.")
@click.pass_obj
def upgrade(settings: config.Settings, sql: bool, force: bool) -> None:
    """Upgrade the database to the head revision."""
    url = resolve_db_url(settings)
    cfg = config.build_alembic_config(db_url=url, stdout=sys.stdout)
    if not force and not sql:
        warn(UPGRADE_SCHEMA_WARNING)
        click.secho(f"db: {click.style(sanitize_url(url), underline=True)}")
        click.confirm("Are you sure you want to proceed?", abort=True)
    command.upgrade(cfg, revision="head", sql=sql)
    success("Upgrade complete!")


def _current_revision(engine: Engine) -> str | None:
    with engine.connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def _head_revision(cfg: Config) -> str | None:
    heads_ = ScriptDirectory.from_config(cfg).get_heads()
    return heads_[0] if heads_ else None


class MigrationStatus(Enum):
    """Migration state of the database schema."""

    UP_TO_DATE = "up to date"
    OUT_OF_DATE = "out of date"
    UNINITIALIZED = "uninitialized"


def migration_status(current_rev: str | None, head_rev: str | None) -> MigrationStatus:
    """Compare the database revision with the head revision."""
    if current_rev == head_rev:
        return MigrationStatus.UP_TO_DATE
    if current_rev is None:
        return MigrationStatus.UNINITIALIZED
    return MigrationStatus.OUT_OF_DATE


@db.command()
@click.pass_obj
def status(settings: config.Settings) -> None:
    """Show database connection and schema status."""
    try:
        engine = make_engine(resolve_db_url(settings))
    except click.ClickException as e:
        error("Cannot connect to database")
        click.echo(e.format_message())
        return

    success("Database reachable")
    click.echo(f"Profile : {settings.profile}")
    click.echo(f"Backend : {engine.dialect.name}")
    click.echo(f"URL     : {sanitize_url(str(engine.url))}")

    rev = _current_revision(engine)
    state = migration_status(rev, _head_revision(config.build_alembic_config()))
    click.echo(f"Schema  : {rev} ({state.value})" if rev else f"Schema  : {state.value}")

    if state is not MigrationStatus.UP_TO_DATE:
        warn(UPGRADE_SCHEMA_INSTRUCTIONS)
