"""Relational persistence: engine factory, metadata, column types and tables."""
