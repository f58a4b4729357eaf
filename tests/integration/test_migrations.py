"""Integration tests for the Alembic migrations on SQLite."""

from __future__ import annotations

from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from sysmgmt import config
from sysmgmt.infrastructure.db.metadata import metadata


def test_upgrade_reaches_head(sqlite_engine_file):
    head = ScriptDirectory.from_config(config.build_alembic_config()).get_current_head()
    with sqlite_engine_file.connect() as conn:
        assert MigrationContext.configure(conn).get_current_revision() == head


def test_migrated_schema_matches_metadata(sqlite_engine_file):
    inspector = inspect(sqlite_engine_file)

    for table in metadata.sorted_tables:
        columns = {column["name"] for column in inspector.get_columns(table.name)}
        assert columns == set(table.columns.keys()), table.name


def test_result_index_and_foreign_key(sqlite_engine_file):
    inspector = inspect(sqlite_engine_file)

    indexes = {ix["name"]: ix["column_names"] for ix in inspector.get_indexes("health_check_result")}
    assert indexes["ix_health_check_result_api_id_checked_at"] == ["api_id", "checked_at"]

    (fk,) = inspector.get_foreign_keys("health_check_result")
    assert fk["referred_table"] == "external_api"
    assert fk["constrained_columns"] == ["api_id"]
