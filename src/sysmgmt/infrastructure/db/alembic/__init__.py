"""Alembic migration scripts for SYSMGMT (see `sysmgmt.config.build_alembic_config`)."""
