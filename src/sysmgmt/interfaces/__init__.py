"""Capability interfaces (ports) for SYSMGMT.

Framework-free ABCs describing what the service layer needs from the outside
world: storage of APIs and results, a short-lived unhealthy cache, an HTTP
probe and a metrics sink. Each port owns its exception hierarchy so adapters
can translate driver errors precisely.

Layering & dependency rules:
- Do NOT import from adapters, bootstrap, or entrypoints.
- Safe to import from service layer and adapters.
"""
