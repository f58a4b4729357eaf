"""Service layer for SYSMGMT.

Implements the health-check use-cases: probing external APIs, recording the
outcome, keeping the unhealthy-API cache current and scheduling periodic runs,
plus read-only availability queries over that cache.

Dependency rule: may import `sysmgmt.domain`, `sysmgmt.interfaces` and
`sysmgmt.config`, but not `sysmgmt.adapters` or `sysmgmt.entrypoints`.
"""
