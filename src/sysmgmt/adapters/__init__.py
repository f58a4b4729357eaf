"""Adapters (outbound implementations of `sysmgmt.interfaces`).

In-memory adapters back the "test" profile and unit tests; the SQLAlchemy
adapters back the default profile; `HttpxProbe` reaches real endpoints.
"""
