"""Domain layer for SYSMGMT.

Pure model of monitored external APIs and the results of checking them.
No I/O lives here: no HTTP, no database, no cache.

Dependency rule: must not import `sysmgmt.adapters`, `sysmgmt.service_layer`,
`sysmgmt.bootstrap` or `sysmgmt.entrypoints`.
"""
