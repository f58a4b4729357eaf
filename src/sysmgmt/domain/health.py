"""Pure classification rules for health checks."""

from __future__ import annotations

from .models import ExternalApi, HealthCheckPriority, HealthCheckType, HealthStatus

TRUNCATION_MARKER = "..."  # pragma: no mutate
MIN_TEXT_RESPONSE_LENGTH = 10


def determine_check_type(api: ExternalApi) -> HealthCheckType:
    """High priority APIs get a dynamic check; the rest a static one."""
    if api.priority is HealthCheckPriority.HIGH:
        return HealthCheckType.DYNAMIC
    return HealthCheckType.STATIC


def determine_health_status(
    status_code: int, response_time_ms: int, degraded_threshold_ms: int
) -> HealthStatus:
    """Classify an HTTP answer.

    Args:
        status_code: HTTP status code returned by the API.
        response_time_ms: Elapsed time of the request.
        degraded_threshold_ms: Successful answers slower than this are DEGRADED.

    Returns:
        HEALTHY or DEGRADED for 2xx, UNHEALTHY for 4xx/5xx, UNKNOWN otherwise.
    """
    if 200 <= status_code < 300:
        if response_time_ms > degraded_threshold_ms:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY
    if status_code >= 400:
        return HealthStatus.UNHEALTHY
    return HealthStatus.UNKNOWN


def validate_response_structure(body: str | None) -> bool:
    """Loose structural check of a response body.

    A body passes when it looks like a JSON object, looks like XML, or is
    free text longer than `MIN_TEXT_RESPONSE_LENGTH` characters.
    """
    if body is None or not body.strip():
        return False
    trimmed = body.strip()
    if trimmed.startswith("{") and trimmed.endswith("}"):
        return True
    if trimmed.startswith("<") and trimmed.endswith(">"):
        return True
    return len(trimmed) > MIN_TEXT_RESPONSE_LENGTH


def truncate_response(body: str | None, limit: int) -> str | None:
    """Cut `body` to `limit` characters, marking the cut with ``"..."``."""
    if body is None:
        return None
    if len(body) > limit:
        return body[:limit] + TRUNCATION_MARKER
    return body
