"""Infrastructure for SYSMGMT: database engine, schema and migrations."""
