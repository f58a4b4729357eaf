"""In-memory repositories.

Thread-safe (a single lock per repository) so they can back the concurrent
`HealthCheckService.check_all_apis` in tests and under the "test" profile.
"""

from __future__ import annotations

import threading
import uuid
from collections import defaultdict
from dataclasses import replace

from sysmgmt.domain.models import ExternalApi, HealthCheckResult, utc_now
from sysmgmt.interfaces.api_registry import DuplicateApiError, ExternalApiRepository
from sysmgmt.interfaces.result_store import HealthCheckResultRepository, ResultStoreError


class InMemoryExternalApiRepository(ExternalApiRepository):
    """Dict-backed `ExternalApiRepository`."""

    def __init__(self, apis: list[ExternalApi] | None = None) -> None:
        self._lock = threading.Lock()
        self._apis: dict[str, ExternalApi] = {api.api_id: api for api in apis or []}

    def add(self, api: ExternalApi) -> None:
        with self._lock:
            if api.api_id in self._apis:
                raise DuplicateApiError(api.api_id)
            self._apis[api.api_id] = api

    def save(self, api: ExternalApi) -> ExternalApi:
        with self._lock:
            if api.api_id in self._apis:
                api = replace(api, updated_at=utc_now())
            self._apis[api.api_id] = api
            return api

    def get(self, api_id: str) -> ExternalApi | None:
        with self._lock:
            return self._apis.get(api_id)

    def list_all(self) -> list[ExternalApi]:
        with self._lock:
            return [self._apis[key] for key in sorted(self._apis)]

    def list_effective(self) -> list[ExternalApi]:
        return [api for api in self.list_all() if api.effective]


class InMemoryHealthCheckResultRepository(HealthCheckResultRepository):
    """Append-only, per-API lists of results.

    Args:
        apis: Registry to check `api_id` against on save, like the foreign key
            of the SQL table. Without one any `api_id` is accepted.
    """

    def __init__(self, apis: ExternalApiRepository | None = None) -> None:
        self._apis = apis
        self._lock = threading.Lock()
        self._results: defaultdict[str, list[HealthCheckResult]] = defaultdict(list)

    def save(self, result: HealthCheckResult) -> HealthCheckResult:
        if self._apis is not None and self._apis.get(result.api_id) is None:
            raise ResultStoreError(
                f"cannot store result for unregistered API '{result.api_id}'"
            )
        if result.check_id is None:
            result = replace(result, check_id=str(uuid.uuid4()))
        with self._lock:
            self._results[result.api_id].append(result)
        return result

    def latest(self, api_id: str) -> HealthCheckResult | None:
        history = self.history(api_id, limit=1)
        return history[0] if history else None

    def history(self, api_id: str, limit: int | None = None) -> list[HealthCheckResult]:
        if limit is not None and limit < 1:
            raise ValueError("limit cannot be <= 0")
        with self._lock:
            # equal timestamps: later insertion first
            ordered = sorted(
                enumerate(self._results.get(api_id, [])),
                key=lambda pair: (pair[1].checked_at, pair[0]),
                reverse=True,
            )
        results = [result for _, result in ordered]
        return results if limit is None else results[:limit]
