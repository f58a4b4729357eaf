"""Storage for health check results."""

import abc
from collections.abc import Sequence

from sysmgmt.domain.models import HealthCheckResult


class ResultStoreError(Exception):
    """Base class for result store errors."""


class ResultStoreUnavailableError(ResultStoreError):
    """Operational/connection errors; callers may retry."""


class HealthCheckResultRepository(abc.ABC):
    """Contract for recording and querying `HealthCheckResult` history."""

    @abc.abstractmethod
    def save(self, result: HealthCheckResult) -> HealthCheckResult:
        """Persist `result` and return it with `check_id` assigned."""

    @abc.abstractmethod
    def latest(self, api_id: str) -> HealthCheckResult | None:
        """Return the most recent result for `api_id`, or None."""

    @abc.abstractmethod
    def history(self, api_id: str, limit: int | None = None) -> Sequence[HealthCheckResult]:
        """Return results for `api_id`, newest first.

        Raises:
            ValueError: If `limit` is given and < 1.
        """

    def latest_consecutive_failures(self, api_id: str) -> int:
        """Failure streak recorded on the most recent result (0 if none)."""
        latest = self.latest(api_id)
        return latest.consecutive_failures if latest is not None else 0
