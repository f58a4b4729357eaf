"""Health checks of registered external APIs."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import replace
from datetime import datetime
from typing import Any

from sysmgmt.config import Settings
from sysmgmt.domain.health import (
    determine_check_type,
    determine_health_status,
    truncate_response,
    validate_response_structure,
)
from sysmgmt.domain.models import (
    ExternalApi,
    HealthCheckResult,
    HealthCheckType,
    HealthStatus,
    utc_now,
)
from sysmgmt.interfaces.api_registry import ApiRegistryError, ExternalApiRepository
from sysmgmt.interfaces.health_cache import HealthCacheError, UnhealthyApiCache
from sysmgmt.interfaces.http_probe import (
    HttpProbe,
    ProbeHttpError,
    ProbeRequestError,
    ProbeTimeoutError,
)
from sysmgmt.interfaces.metrics import MetricsRecorder
from sysmgmt.interfaces.result_store import HealthCheckResultRepository

logger = logging.getLogger(__name__)

STRUCTURE_VALIDATION_FAILED = "Response structure validation failed"  # pragma: no mutate


class HealthCheckService:  # pylint: disable=too-many-instance-attributes
    """Check external APIs and keep their health state current.

    Every collaborator is passed in; nothing is looked up from ambient state.

    Args:
        apis: Registry of monitored APIs.
        results: Store for check results.
        cache: Short-lived cache of APIs currently failing.
        metrics: Sink for per-check measurements.
        probe: HTTP client used to reach the APIs.
        settings: Resolved configuration (timeouts, TTL, pool size, scheduler).
        timer: Monotonic seconds source used to time requests.
        clock: Source of the ``checked_at`` timestamps.

    Note:
        `apis` and `results` are also exposed as attributes so entrypoints can
        run read-only queries without a second wiring path.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        apis: ExternalApiRepository,
        results: HealthCheckResultRepository,
        cache: UnhealthyApiCache,
        metrics: MetricsRecorder,
        probe: HttpProbe,
        settings: Settings,
        *,
        timer: Callable[[], float] = time.monotonic,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.apis = apis
        self.results = results
        self.settings = settings
        self._cache = cache
        self._metrics = metrics
        self._probe = probe
        self._timer = timer
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register_api(self, api: ExternalApi) -> None:
        """Add `api` to the registry.

        Raises:
            DuplicateApiError: If an API with the same id already exists.
        """
        self.apis.add(api)
        logger.info("Registered API %s (%s), priority %s", api.api_id, api.name, api.priority.name)

    # ------------------------------------------------------------------ #
    # Single check
    # ------------------------------------------------------------------ #

    def check_api(self, api: ExternalApi) -> HealthCheckResult:
        """Check one API, then record the outcome.

        The returned result is the stored one (``check_id`` assigned). If
        anything outside the probe fails, an unsaved ``UNKNOWN`` result is
        returned instead of raising.
        """
        try:
            check_type = determine_check_type(api)
            if check_type is HealthCheckType.DYNAMIC:
                result = self._dynamic_check(api)
            else:
                result = self._static_check(api)

            result = self.results.save(result)
            self._metrics.record_health_check(
                api.name, api.issuer, result.is_success, result.response_time_ms or 0
            )
            self._update_cache(api.api_id, result)
            logger.debug("Health check of %s done: %s", api.name, result.summary())
            return result

        except Exception as e:  # pylint: disable=broad-except
            logger.exception("Unexpected error during health check of %s", api.name)
            return HealthCheckResult(
                api_id=api.api_id,
                check_type=HealthCheckType.STATIC,
                status=HealthStatus.UNKNOWN,
                error_message=f"Unexpected error: {e}",
                checked_at=self._clock(),
            )

    def _static_check(self, api: ExternalApi) -> HealthCheckResult:
        timeout_s = self.settings.request_timeout_s
        start = self._timer()
        try:
            response = self._probe.get(api.url, timeout_s)
        except ProbeHttpError as e:
            elapsed_ms = self._elapsed_ms(start)
            return HealthCheckResult(
                api_id=api.api_id,
                check_type=HealthCheckType.STATIC,
                status=determine_health_status(
                    e.status_code, elapsed_ms, self.settings.degraded_threshold_ms
                ),
                http_status_code=e.status_code,
                response_time_ms=elapsed_ms,
                error_message=f"HTTP Error: {e.status_code} {e.reason}".rstrip(),
                error_details=e.body,
                checked_at=self._clock(),
                consecutive_failures=self.results.latest_consecutive_failures(api.api_id) + 1,
            )
        except ProbeRequestError as e:
            elapsed_ms = self._elapsed_ms(start)
            timed_out = isinstance(e, ProbeTimeoutError) or elapsed_ms >= timeout_s * 1000
            return HealthCheckResult(
                api_id=api.api_id,
                check_type=HealthCheckType.STATIC,
                status=HealthStatus.TIMEOUT if timed_out else HealthStatus.UNHEALTHY,
                response_time_ms=elapsed_ms,
                error_message=f"Request failed: {e}",
                error_details=str(e.__cause__) if e.__cause__ is not None else None,
                checked_at=self._clock(),
                consecutive_failures=self.results.latest_consecutive_failures(api.api_id) + 1,
                is_timeout=timed_out,
            )
        except Exception as e:  # pylint: disable=broad-except
            logger.warning("Unexpected failure probing %s", api.url, exc_info=True)
            return HealthCheckResult(
                api_id=api.api_id,
                check_type=HealthCheckType.STATIC,
                status=HealthStatus.UNKNOWN,
                response_time_ms=self._elapsed_ms(start),
                error_message=f"Unknown error: {e}",
                error_details=type(e).__name__,
                checked_at=self._clock(),
                consecutive_failures=self.results.latest_consecutive_failures(api.api_id) + 1,
            )

        elapsed_ms = self._elapsed_ms(start)
        return HealthCheckResult(
            api_id=api.api_id,
            check_type=HealthCheckType.STATIC,
            status=determine_health_status(
                response.status_code, elapsed_ms, self.settings.degraded_threshold_ms
            ),
            http_status_code=response.status_code,
            response_time_ms=elapsed_ms,
            response_sample=truncate_response(
                response.body, self.settings.max_response_sample_length
            ),
            checked_at=self._clock(),
            consecutive_failures=0,
        )

    def _dynamic_check(self, api: ExternalApi) -> HealthCheckResult:
        result = replace(self._static_check(api), check_type=HealthCheckType.DYNAMIC)
        if result.is_success and not validate_response_structure(result.response_sample):
            return replace(
                result,
                status=HealthStatus.DEGRADED,
                error_message=STRUCTURE_VALIDATION_FAILED,
            )
        return result

    def _elapsed_ms(self, start: float) -> int:
        return max(0, int((self._timer() - start) * 1000))

    def _update_cache(self, api_id: str, result: HealthCheckResult) -> None:
        try:
            if result.is_failure:
                self._cache.mark_unhealthy(
                    api_id, _cache_snapshot(result), self.settings.unhealthy_ttl_s
                )
                logger.debug(
                    "Cached unhealthy API %s for %ss", api_id, self.settings.unhealthy_ttl_s
                )
            elif self._cache.clear(api_id):
                logger.debug("Removed recovered API %s from cache", api_id)
        except HealthCacheError:
            logger.warning("Failed to update unhealthy cache for %s", api_id, exc_info=True)

    # ------------------------------------------------------------------ #
    # Complete run
    # ------------------------------------------------------------------ #

    def check_all_apis(self) -> dict[str, HealthCheckResult]:
        """Check every effective API concurrently.

        Waits at most ``settings.check_all_timeout_s``. When every check
        finished, API effectiveness is updated from the results; on timeout
        only the completed results are returned and effectiveness is left
        untouched.

        Returns:
            Results keyed by ``api_id``.

        Raises:
            ApiRegistryError: If the effective APIs cannot be listed.
        """
        apis = self.apis.list_effective()
        logger.info("Starting health check of %d active APIs", len(apis))
        if not apis:
            return {}

        executor = ThreadPoolExecutor(
            max_workers=self.settings.max_workers, thread_name_prefix="healthcheck"
        )
        try:
            futures: dict[Future[HealthCheckResult], ExternalApi] = {
                executor.submit(self.check_api, api): api for api in apis
            }
            done, not_done = wait(futures, timeout=self.settings.check_all_timeout_s)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        results = {futures[future].api_id: future.result() for future in done}
        if not_done:
            logger.error(
                "Health check run timed out after %ss: %d of %d APIs completed",
                self.settings.check_all_timeout_s,
                len(done),
                len(futures),
            )
            return results

        logger.info("Health check completed for %d APIs", len(results))
        self._update_effectiveness(results)
        return results

    def _update_effectiveness(self, results: dict[str, HealthCheckResult]) -> None:
        for api_id, result in results.items():
            try:
                api = self.apis.get(api_id)
                if api is None or api.effective == result.is_success:
                    continue
                self.apis.save(replace(api, effective=result.is_success))
                logger.info(
                    "API effectiveness updated - %s: %s -> %s",
                    api.name,
                    api.effective,
                    result.is_success,
                )
            except ApiRegistryError:
                logger.exception("Failed to update effectiveness of %s", api_id)

    # ------------------------------------------------------------------ #
    # Cache queries
    # ------------------------------------------------------------------ #

    def unhealthy_api_ids(self) -> list[str]:
        """APIs currently in the unhealthy cache; empty if the cache fails."""
        try:
            return list(self._cache.unhealthy_ids())
        except HealthCacheError:
            logger.exception("Failed to read unhealthy APIs from cache")
            return []

    def is_api_currently_unhealthy(self, api_id: str) -> bool:
        """True if `api_id` is cached as unhealthy; False if the cache fails."""
        try:
            return self._cache.is_unhealthy(api_id)
        except HealthCacheError:
            logger.warning("Failed to check cached health of %s", api_id, exc_info=True)
            return False

    # ------------------------------------------------------------------ #
    # Scheduling
    # ------------------------------------------------------------------ #

    def scheduled_health_check(self) -> dict[str, int] | None:
        """Run one complete check and summarise it.

        Returns:
            ``{"checked": n, "healthy": m}``, or None when the scheduler is
            disabled in the settings.
        """
        if not self.settings.scheduler_enabled:
            logger.debug("Scheduler disabled; skipping scheduled health check")
            return None

        logger.info("Starting scheduled health check")
        results = self.check_all_apis()
        healthy = sum(1 for result in results.values() if result.is_success)
        logger.info("Health check summary - Healthy: %d/%d", healthy, len(results))
        return {"checked": len(results), "healthy": healthy}

    def run_scheduler(self, stop_event: threading.Event, iterations: int | None = None) -> int:
        """Run `scheduled_health_check` periodically until `stop_event` is set.

        Waits ``scheduler_initial_delay_s`` before the first run and
        ``scheduler_fixed_delay_s`` between the end of one run and the start
        of the next. Registry failures are logged and the loop continues.

        Args:
            stop_event: Set it from another thread to stop the loop.
            iterations: Stop after this many runs (unbounded when None).

        Returns:
            Number of runs performed.
        """
        if not self.settings.scheduler_enabled:
            logger.info("Scheduler disabled (profile %s)", self.settings.profile)
            return 0
        if iterations is not None and iterations < 1:
            raise ValueError("iterations must be >= 1")

        runs = 0
        if stop_event.wait(self.settings.scheduler_initial_delay_s):
            return runs
        while True:
            try:
                self.scheduled_health_check()
            except ApiRegistryError:
                logger.exception("Scheduled health check failed")
            runs += 1
            if iterations is not None and runs >= iterations:
                return runs
            if stop_event.wait(self.settings.scheduler_fixed_delay_s):
                return runs


def _cache_snapshot(result: HealthCheckResult) -> dict[str, Any]:
    return {
        "status": result.status.name,
        "error_message": result.error_message or "",
        "response_time_ms": result.response_time_ms or 0,
        "last_check": result.checked_at.isoformat(),
        "consecutive_failures": result.consecutive_failures,
    }
