"""Read-side views of API availability built from the unhealthy cache."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .models import ApiDomain, HealthCheckPriority


class SystemHealth(Enum):
    """Overall grade of the monitored APIs, from the availability rate."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


# (lower bound of the availability rate, grade), best first
_HEALTH_GRADES = (
    (99.0, SystemHealth.EXCELLENT),
    (95.0, SystemHealth.GOOD),
    (90.0, SystemHealth.FAIR),
    (80.0, SystemHealth.POOR),
)


class SeverityLevel(Enum):
    """How bad an unavailable API's last failure was."""

    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


_SEVERITIES = {
    "UNHEALTHY": SeverityLevel.CRITICAL,
    "TIMEOUT": SeverityLevel.HIGH,
    "DEGRADED": SeverityLevel.MEDIUM,
    "UNKNOWN": SeverityLevel.LOW,
}


@dataclass(frozen=True)
class ApiAvailability:  # pylint: disable=too-many-instance-attributes
    """Current availability of one API.

    An API with no live cache entry is available. For an unavailable one the
    remaining fields come from the snapshot cached by its last failing check,
    and `ttl_s` is how long that entry still lives.
    """

    api_id: str
    available: bool
    status: str
    message: str
    checked_at: datetime
    response_time_ms: int | None = None
    consecutive_failures: int = 0
    ttl_s: float | None = None

    @property
    def severity(self) -> SeverityLevel:
        if self.available:
            return SeverityLevel.NONE
        return _SEVERITIES.get(self.status, SeverityLevel.LOW)

    def estimated_recovery_at(self, now: datetime) -> datetime | None:
        """When the cache entry expires and the API is tried as available again."""
        if self.available or self.ttl_s is None or self.ttl_s <= 0:
            return None
        return now + timedelta(seconds=self.ttl_s)


@dataclass(frozen=True)
class ApiStatusSummary:  # pylint: disable=too-many-instance-attributes
    """Counts of registered, effective and available APIs.

    `domain_stats` and `priority_stats` count the available APIs and list
    every domain and priority, with zero where none is available.
    """

    total_apis: int
    effective_apis: int
    available_apis: int
    unavailable_apis: int
    availability_rate: float
    domain_stats: Mapping[ApiDomain, int]
    priority_stats: Mapping[HealthCheckPriority, int]
    last_updated: datetime

    @property
    def system_health(self) -> SystemHealth:
        if self.effective_apis == 0:
            return SystemHealth.UNKNOWN
        for lower_bound, grade in _HEALTH_GRADES:
            if self.availability_rate >= lower_bound:
                return grade
        return SystemHealth.CRITICAL

    def simple_status(self) -> str:
        """One-line form, e.g. ``available: 3/4 (75.0%)``."""
        return (
            f"available: {self.available_apis}/{self.effective_apis} "
            f"({self.availability_rate:.1f}%)"
        )


def availability_rate(available: int, effective: int) -> float:
    """Percentage of effective APIs that are available; 100.0 when there are none."""
    if effective == 0:
        return 100.0
    return available / effective * 100
