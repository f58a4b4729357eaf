"""Bootstrap (composition root) for SYSMGMT.

Assembles the application at runtime: picks repository adapters for the
configured backend, builds the HTTP probe, cache and metrics recorder, and
hands them to `HealthCheckService` and `ApiStatusService` together with the
resolved `Settings`. The resulting `AppContainer` owns the probe and engine.

Import rules:
- Entry points import *this* package (not adapters/service_layer/interfaces/domain).
- This package may import: `sysmgmt.adapters`, `sysmgmt.infrastructure`,
  `sysmgmt.service_layer`, `sysmgmt.interfaces`, `sysmgmt.domain`, and
  `sysmgmt.config`.
- Inner layers must not import `sysmgmt.bootstrap`.

No business rules live here; this is assembly and lifecycle only.
"""

from .bootstrap import (
    AppContainer,
    bootstrap,
    build_engine,
    build_health_check_service,
    build_repositories,
)

__all__ = [
    "AppContainer",
    "bootstrap",
    "build_engine",
    "build_health_check_service",
    "build_repositories",
]
