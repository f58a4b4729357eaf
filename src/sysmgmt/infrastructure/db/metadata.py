"""`MetaData` for the ``external_api`` and ``health_check_result`` tables.

Constraint names come from the convention below instead of the backend, so
the revision in ``alembic/versions`` names them the same on SQLite and
PostgreSQL, and a later ``alembic revision --autogenerate`` compares equal
names. For example the results foreign key is
``fk_health_check_result_api_id_external_api``.
"""

from sqlalchemy import MetaData

NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "fk": "fk_%(table_name)s_%(column_0_N_name)s_%(referred_table_name)s",
    "ix": "ix_%(table_name)s_%(column_0_N_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)
