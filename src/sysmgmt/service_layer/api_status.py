"""Availability queries for callers that need to know which APIs to use.

An API is available unless the unhealthy cache holds a live entry for it.
Cache failures never make an API look unavailable: they are logged and the
API is reported as available. Registry failures propagate.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from sysmgmt.domain.models import (
    ApiDomain,
    ApiKeyword,
    ExternalApi,
    HealthCheckPriority,
    HealthStatus,
    utc_now,
)
from sysmgmt.domain.status import ApiAvailability, ApiStatusSummary, availability_rate
from sysmgmt.interfaces.api_registry import ExternalApiRepository
from sysmgmt.interfaces.health_cache import HealthCacheError, UnhealthyApiCache

logger = logging.getLogger(__name__)


class ApiStatusService:
    """Answer "can I call this API right now?" from the unhealthy cache.

    Args:
        apis: Registry of monitored APIs.
        cache: The cache `HealthCheckService` keeps current.
        clock: Source of the ``checked_at``/``last_updated`` timestamps.
    """

    def __init__(
        self,
        apis: ExternalApiRepository,
        cache: UnhealthyApiCache,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.apis = apis
        self._cache = cache
        self._clock = clock

    def is_api_available(self, api_id: str) -> bool:
        try:
            return not self._cache.is_unhealthy(api_id)
        except HealthCacheError:
            logger.warning(
                "Failed to check availability of %s, assuming available", api_id, exc_info=True
            )
            return True

    def check_apis_availability(self, api_ids: Iterable[str]) -> dict[str, bool]:
        """Availability of every id in `api_ids`, read with one cache lookup."""
        api_ids = list(api_ids)
        if not api_ids:
            return {}
        unhealthy = self._unhealthy_set()
        return {api_id: api_id not in unhealthy for api_id in api_ids}

    def unavailable_api_ids(self) -> list[str]:
        return sorted(self._unhealthy_set())

    def _unhealthy_set(self) -> set[str]:
        try:
            return set(self._cache.unhealthy_ids())
        except HealthCacheError:
            logger.exception("Failed to read unhealthy APIs from cache")
            return set()

    # ------------------------------------------------------------------ #
    # Filtered listings of effective, available APIs
    # ------------------------------------------------------------------ #

    def available_apis(self) -> list[ExternalApi]:
        unhealthy = self._unhealthy_set()
        return [api for api in self.apis.list_effective() if api.api_id not in unhealthy]

    def available_apis_by_domain(self, domain: ApiDomain) -> list[ExternalApi]:
        return [api for api in self.available_apis() if api.domain is domain]

    def available_apis_by_keyword(self, keyword: ApiKeyword) -> list[ExternalApi]:
        return [api for api in self.available_apis() if api.keyword is keyword]

    def available_apis_by_priority(self) -> dict[HealthCheckPriority, list[ExternalApi]]:
        """Available APIs grouped by priority; priorities with none are left out."""
        grouped: dict[HealthCheckPriority, list[ExternalApi]] = {}
        for api in self.available_apis():
            grouped.setdefault(api.priority, []).append(api)
        return grouped

    # ------------------------------------------------------------------ #
    # Details and summary
    # ------------------------------------------------------------------ #

    def api_status_details(self, api_id: str) -> ApiAvailability:
        """Availability of `api_id` with the details of its last failure, if any."""
        now = self._clock()
        try:
            snapshot = self._cache.snapshot(api_id)
            ttl_s = self._cache.ttl_remaining(api_id) if snapshot is not None else None
        except HealthCacheError:
            logger.exception("Failed to read cached status of %s", api_id)
            return ApiAvailability(
                api_id=api_id,
                available=True,
                status=HealthStatus.UNKNOWN.name,
                message="Failed to check API status",
                checked_at=now,
            )

        if snapshot is None:
            return ApiAvailability(
                api_id=api_id,
                available=True,
                status=HealthStatus.HEALTHY.name,
                message="API is currently available",
                checked_at=now,
            )
        return ApiAvailability(
            api_id=api_id,
            available=False,
            status=str(snapshot.get("status", HealthStatus.UNKNOWN.name)),
            message=snapshot.get("error_message") or "API is currently unavailable",
            checked_at=_parse_checked_at(snapshot.get("last_check"), default=now),
            response_time_ms=int(snapshot.get("response_time_ms", 0)),
            consecutive_failures=int(snapshot.get("consecutive_failures", 0)),
            ttl_s=ttl_s,
        )

    def status_summary(self) -> ApiStatusSummary:
        """Count registered, effective and available APIs.

        Only effective APIs count as available or unavailable, so
        ``available_apis + unavailable_apis == effective_apis`` always holds.
        """
        all_apis = self.apis.list_all()
        effective = [api for api in all_apis if api.effective]
        unhealthy = self._unhealthy_set()
        available = [api for api in effective if api.api_id not in unhealthy]

        domains = Counter(api.domain for api in available)
        priorities = Counter(api.priority for api in available)
        return ApiStatusSummary(
            total_apis=len(all_apis),
            effective_apis=len(effective),
            available_apis=len(available),
            unavailable_apis=len(effective) - len(available),
            availability_rate=availability_rate(len(available), len(effective)),
            domain_stats={domain: domains[domain] for domain in ApiDomain},
            priority_stats={priority: priorities[priority] for priority in HealthCheckPriority},
            last_updated=self._clock(),
        )

    def recovery_estimates(self) -> dict[str, float]:
        """Seconds until each unavailable API's cache entry expires."""
        estimates: dict[str, float] = {}
        for api_id in self.unavailable_api_ids():
            try:
                ttl_s = self._cache.ttl_remaining(api_id)
            except HealthCacheError:
                logger.warning("Failed to read cache TTL of %s", api_id, exc_info=True)
                continue
            if ttl_s is not None and ttl_s > 0:
                estimates[api_id] = ttl_s
        return estimates


def _parse_checked_at(value: Any, default: datetime) -> datetime:
    if not value:
        return default
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return default
