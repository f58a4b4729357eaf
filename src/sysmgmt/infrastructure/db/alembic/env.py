"""Alembic environment for the health tables.

Run by ``sysmgmt db upgrade``/``current``/``check`` (which pass the URL in the
config) and by a bare ``alembic`` call (which reads ``-x url=...`` or falls
back to ``SYSMGMT_DB_URL``). SQLite gets batch mode since it cannot ALTER
most columns in place.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

# registers external_api and health_check_result on the metadata
import sysmgmt.infrastructure.db.schema  # noqa: F401 # pylint: disable=unused-import
from sysmgmt import config as sysmgmt_config
from sysmgmt.infrastructure.db.metadata import metadata

# pylint: disable=no-member

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

COMMON_OPTIONS = {"target_metadata": metadata, "compare_type": True}


def _is_set(url: str | None) -> bool:
    # alembic.ini ships an interpolation placeholder, not a URL
    return bool(url) and "%(" not in url  # type: ignore[operator]


def database_url() -> str:
    """URL from ``-x url=...``, then the Alembic config, then ``SYSMGMT_DB_URL``."""
    for url in (
        context.get_x_argument(as_dictionary=True).get("url"),
        config.get_main_option("sqlalchemy.url"),
    ):
        if _is_set(url):
            return url
    try:
        return sysmgmt_config.get_db_url()
    except sysmgmt_config.DatabaseUrlNotSetError as e:
        raise RuntimeError(
            "No database URL: pass -x url=... or set SYSMGMT_DB_URL."
        ) from e


def run_migrations_offline() -> None:
    """Print the migration SQL instead of executing it."""
    context.configure(
        url=database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMMON_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrate over a single unpooled connection."""
    engine = engine_from_config(
        {"sqlalchemy.url": database_url()}, prefix="sqlalchemy.", poolclass=pool.NullPool
    )
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            render_as_batch=connection.dialect.name == "sqlite",  # pylint: disable=R2004
            **COMMON_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
