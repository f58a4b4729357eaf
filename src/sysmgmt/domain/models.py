"""Domain models: monitored external APIs and health check results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .errors import InvalidExternalApiError

SLOW_RESPONSE_MS = 3000

HTTP_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})


def utc_now() -> datetime:
    """Return the current time as a tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


class ApiDomain(Enum):
    """Business domain an external API belongs to."""

    WEATHER = "weather"
    TRAFFIC = "traffic"
    PUBLIC_FACILITY = "public facility"
    NEWS = "news"
    FINANCE = "finance"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    CULTURE = "culture"
    ENVIRONMENT = "environment"
    DISASTER = "disaster safety"
    OTHER = "other"


class ApiKeyword(Enum):
    """Finer classification of an external API."""

    REAL_TIME = "real-time"
    DAILY = "daily"
    HOURLY = "hourly"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    BATCH = "batch"
    STREAMING = "streaming"
    SEARCH = "search"
    LIST = "list"
    DETAIL = "detail"
    STATISTICS = "statistics"
    FORECAST = "forecast"
    ALERT = "alert"
    LOCATION_BASED = "location based"
    USER_SPECIFIC = "user specific"
    PUBLIC_DATA = "public data"
    OPEN_API = "open api"
    REST_API = "rest"
    SOAP_API = "soap"
    GRAPHQL = "graphql"


class HealthCheckPriority(Enum):
    """How urgently an API is checked, with its nominal check interval."""

    HIGH = 60
    MEDIUM = 120
    LOW = 300

    @property
    def interval_seconds(self) -> int:
        """Nominal seconds between two checks of an API with this priority."""
        return self.value


_HIGH_PRIORITY_KEYWORDS = frozenset({ApiKeyword.REAL_TIME, ApiKeyword.STREAMING})
_MEDIUM_PRIORITY_DOMAINS = frozenset(
    {ApiDomain.WEATHER, ApiDomain.TRAFFIC, ApiDomain.DISASTER}
)


@dataclass(frozen=True)
class ExternalApi:  # pylint: disable=too-many-instance-attributes
    """An external API registered for health monitoring.

    `effective` mirrors the outcome of the most recent complete check run:
    only effective APIs are picked up by `HealthCheckService.check_all_apis`.
    """

    api_id: str
    name: str
    url: str
    issuer: str
    domain: ApiDomain
    keyword: ApiKeyword
    http_method: str = "GET"
    owner: str | None = None
    description: str | None = None
    effective: bool = True
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.api_id.strip():
            raise InvalidExternalApiError(self.api_id, "api_id must be non-empty")
        if not self.name.strip():
            raise InvalidExternalApiError(self.api_id, "name must be non-empty")
        if not self.url.startswith(("http://", "https://")):
            raise InvalidExternalApiError(
                self.api_id, f"url must be http(s), got {self.url!r}"
            )
        if self.http_method not in HTTP_METHODS:
            raise InvalidExternalApiError(
                self.api_id, f"unsupported HTTP method {self.http_method!r}"
            )

    @property
    def priority(self) -> HealthCheckPriority:
        """Priority derived from keyword first, then domain."""
        if self.keyword in _HIGH_PRIORITY_KEYWORDS:
            return HealthCheckPriority.HIGH
        if self.domain in _MEDIUM_PRIORITY_DOMAINS:
            return HealthCheckPriority.MEDIUM
        return HealthCheckPriority.LOW

    @property
    def is_healthy(self) -> bool:
        """True while the API is considered effective."""
        return self.effective


class HealthCheckType(Enum):
    """Kind of check performed against an API."""

    STATIC = "static"  # status code only
    DYNAMIC = "dynamic"  # status code + response structure
    DEEP = "deep"
    SYNTHETIC = "synthetic"


class HealthStatus(Enum):
    """Outcome of a single health check."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"

    @property
    def is_healthy(self) -> bool:
        return self is HealthStatus.HEALTHY

    @property
    def is_unhealthy(self) -> bool:
        return self in (HealthStatus.UNHEALTHY, HealthStatus.TIMEOUT)


_BASE_SCORES = {
    HealthStatus.HEALTHY: 100,
    HealthStatus.DEGRADED: 70,
    HealthStatus.UNHEALTHY: 30,
    HealthStatus.TIMEOUT: 20,
    HealthStatus.UNKNOWN: 0,
}


@dataclass(frozen=True)
class HealthCheckResult:  # pylint: disable=too-many-instance-attributes
    """Result of checking one API once.

    `check_id` is None until the result has been saved.
    """

    api_id: str
    check_type: HealthCheckType
    status: HealthStatus
    checked_at: datetime = field(default_factory=utc_now)
    http_status_code: int | None = None
    response_time_ms: int | None = None
    error_message: str | None = None
    error_details: str | None = None
    response_sample: str | None = None
    consecutive_failures: int = 0
    is_timeout: bool = False
    checked_by: str | None = None
    check_id: str | None = None

    @property
    def is_success(self) -> bool:
        """Healthy and degraded APIs still answer; both count as success."""
        return self.status in (HealthStatus.HEALTHY, HealthStatus.DEGRADED)

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def is_slow(self) -> bool:
        return self.response_time_ms is not None and self.response_time_ms > SLOW_RESPONSE_MS

    def health_score(self) -> int:
        """Score from 0 to 100 combining status, latency and failure streak."""
        score = _BASE_SCORES[self.status]

        if self.response_time_ms is not None:
            if self.response_time_ms > 5000:
                score -= 20
            elif self.response_time_ms > 3000:
                score -= 10
            elif self.response_time_ms > 1000:
                score -= 5

        if self.consecutive_failures > 0:
            score -= min(self.consecutive_failures * 10, 30)

        return max(0, score)

    def summary(self) -> str:
        """One-line human summary, e.g. ``"unhealthy (120ms) [3 consecutive failures]"``."""
        parts = [self.status.value]
        if self.response_time_ms is not None:
            parts.append(f"({self.response_time_ms}ms)")
        if self.consecutive_failures > 0:
            parts.append(f"[{self.consecutive_failures} consecutive failures]")
        return " ".join(parts)
