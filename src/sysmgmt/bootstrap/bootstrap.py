"""Wire adapters into the health check service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sysmgmt import config
from sysmgmt.adapters.health_cache import InMemoryUnhealthyApiCache
from sysmgmt.adapters.http_probe import HttpxProbe
from sysmgmt.adapters.memory import (
    InMemoryExternalApiRepository,
    InMemoryHealthCheckResultRepository,
)
from sysmgmt.adapters.metrics import InMemoryMetricsRecorder
from sysmgmt.adapters.sqlalchemy_repos import (
    SqlAlchemyExternalApiRepository,
    SqlAlchemyHealthCheckResultRepository,
)
from sysmgmt.infrastructure.db.engine import is_sqlite_memory, make_engine
from sysmgmt.infrastructure.db.metadata import metadata
from sysmgmt.interfaces.api_registry import ExternalApiRepository
from sysmgmt.interfaces.health_cache import UnhealthyApiCache
from sysmgmt.interfaces.http_probe import HttpProbe
from sysmgmt.interfaces.metrics import MetricsRecorder
from sysmgmt.interfaces.result_store import HealthCheckResultRepository
from sysmgmt.service_layer.api_status import ApiStatusService
from sysmgmt.service_layer.health_check import HealthCheckService

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:  # pylint: disable=too-many-instance-attributes
    """A class to hold application wiring constants.

    `probe` and `engine` are the resources the container owns; `close`
    releases them.
    """

    settings: config.Settings
    health_checks: HealthCheckService
    status: ApiStatusService
    metrics: MetricsRecorder
    probe: HttpProbe
    engine: Engine | None = None

    def close(self) -> None:
        """Close the HTTP probe and dispose of the database engine."""
        self.probe.close()
        if self.engine is not None:
            self.engine.dispose()
        logger.debug("Closed application resources")


def build_engine(settings: config.Settings) -> Engine | None:
    """Build the engine for the SQLAlchemy backend; None for the memory backend.

    An in-memory SQLite URL gets its schema created on the spot since nothing
    else could migrate it; every other database is expected to be migrated
    with ``sysmgmt db upgrade``.

    Raises:
        DatabaseUrlNotSetError: If the SQLAlchemy backend is selected without a URL.
    """
    if settings.repository_backend == "memory":
        return None
    url = settings.require_db_url()
    engine = make_engine(url)
    if is_sqlite_memory(url):
        metadata.create_all(engine)
    return engine


def build_repositories(
    settings: config.Settings,
    engine: Engine | None = None,
) -> tuple[ExternalApiRepository, HealthCheckResultRepository]:
    """Build the API registry and result store for ``settings.repository_backend``.

    Both stores reject results for APIs missing from the registry: the SQL
    tables through their foreign key, the in-memory store by looking the id
    up in the registry built alongside it.

    Args:
        settings: Resolved settings.
        engine: Engine for the SQLAlchemy backend; built with `build_engine`
            when omitted.

    Raises:
        DatabaseUrlNotSetError: If the SQLAlchemy backend is selected without a URL.
    """
    if settings.repository_backend == "memory":
        apis = InMemoryExternalApiRepository()
        return apis, InMemoryHealthCheckResultRepository(apis)

    if engine is None:
        engine = build_engine(settings)
    return SqlAlchemyExternalApiRepository(engine), SqlAlchemyHealthCheckResultRepository(
        engine
    )


def build_health_check_service(  # pylint: disable=too-many-arguments
    settings: config.Settings,
    *,
    apis: ExternalApiRepository | None = None,
    results: HealthCheckResultRepository | None = None,
    cache: UnhealthyApiCache | None = None,
    metrics: MetricsRecorder | None = None,
    probe: HttpProbe | None = None,
) -> HealthCheckService:
    """Build a `HealthCheckService`, using the given collaborators where passed.

    Any collaborator left as None is built from `settings`. Tests pass mocks
    (or fakes) here to replace individual adapters.
    """
    if apis is None or results is None:
        default_apis, default_results = build_repositories(settings)
        apis = apis if apis is not None else default_apis
        results = results if results is not None else default_results

    return HealthCheckService(
        apis=apis,
        results=results,
        cache=cache if cache is not None else InMemoryUnhealthyApiCache(),
        metrics=metrics if metrics is not None else InMemoryMetricsRecorder(),
        probe=probe if probe is not None else HttpxProbe(),
        settings=settings,
    )


def bootstrap(profile: str | None = None) -> AppContainer:
    """Resolve settings from the environment and wire the application.

    The returned container owns the HTTP probe and the database engine;
    call `AppContainer.close` when done with it.

    Args:
        profile: Profile to use; defaults to ``SYSMGMT_PROFILE``.
    """
    settings = config.load_settings(profile, environ=os.environ)
    engine = build_engine(settings)
    apis, results = build_repositories(settings, engine)
    cache = InMemoryUnhealthyApiCache()
    metrics = InMemoryMetricsRecorder()
    probe = HttpxProbe()
    health_checks = build_health_check_service(
        settings, apis=apis, results=results, cache=cache, metrics=metrics, probe=probe
    )
    logger.debug(
        "Bootstrapped profile %s with %s repositories",
        settings.profile,
        settings.repository_backend,
    )
    return AppContainer(
        settings=settings,
        health_checks=health_checks,
        status=ApiStatusService(apis, cache),
        metrics=metrics,
        probe=probe,
        engine=engine,
    )
