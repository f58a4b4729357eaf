"""In-process metrics recorder."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from sysmgmt.interfaces.metrics import MetricsRecorder


@dataclass
class ApiCheckStats:
    """Running totals for one (api_name, issuer) pair."""

    total: int = 0
    successes: int = 0
    failures: int = 0
    last_response_time_ms: int = 0
    total_response_time_ms: int = 0

    @property
    def availability(self) -> float:
        """Share of successful checks, 0.0 when nothing was recorded."""
        return self.successes / self.total if self.total else 0.0

    @property
    def average_response_time_ms(self) -> float:
        return self.total_response_time_ms / self.total if self.total else 0.0


class InMemoryMetricsRecorder(MetricsRecorder):
    """Accumulates `ApiCheckStats` keyed by ``(api_name, issuer)``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats: dict[tuple[str, str], ApiCheckStats] = {}

    def record_health_check(
        self, api_name: str, issuer: str, success: bool, response_time_ms: int
    ) -> None:
        with self._lock:
            stats = self._stats.setdefault((api_name, issuer), ApiCheckStats())
            stats.total += 1
            if success:
                stats.successes += 1
            else:
                stats.failures += 1
            stats.last_response_time_ms = response_time_ms
            stats.total_response_time_ms += response_time_ms

    def stats(self, api_name: str, issuer: str) -> ApiCheckStats | None:
        """Return a copy of the stats for one API, or None."""
        with self._lock:
            stats = self._stats.get((api_name, issuer))
            return None if stats is None else ApiCheckStats(**vars(stats))

    def snapshot(self) -> dict[tuple[str, str], ApiCheckStats]:
        """Return a copy of every recorded stats entry."""
        with self._lock:
            return {key: ApiCheckStats(**vars(value)) for key, value in self._stats.items()}
