"""Unit tests for the domain models."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from sysmgmt.domain.errors import InvalidExternalApiError
from sysmgmt.domain.models import (
    ApiDomain,
    ApiKeyword,
    ExternalApi,
    HealthCheckPriority,
    HealthStatus,
)
from tests.helpers.time_asserts import assert_strict_utc

# ============================================================================
#                               ExternalApi
# ============================================================================


@pytest.mark.parametrize(
    "keyword, domain, expected",
    [
        (ApiKeyword.REAL_TIME, ApiDomain.OTHER, HealthCheckPriority.HIGH),
        (ApiKeyword.STREAMING, ApiDomain.WEATHER, HealthCheckPriority.HIGH),
        (ApiKeyword.DAILY, ApiDomain.WEATHER, HealthCheckPriority.MEDIUM),
        (ApiKeyword.LIST, ApiDomain.TRAFFIC, HealthCheckPriority.MEDIUM),
        (ApiKeyword.ALERT, ApiDomain.DISASTER, HealthCheckPriority.MEDIUM),
        (ApiKeyword.SEARCH, ApiDomain.NEWS, HealthCheckPriority.LOW),
    ],
)
def test_priority(make_api, keyword, domain, expected):
    assert make_api(keyword=keyword, domain=domain).priority is expected


def test_priority_intervals():
    assert [p.interval_seconds for p in HealthCheckPriority] == [60, 120, 300]


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"api_id": " "}, "api_id must be non-empty"),
        ({"name": ""}, "name must be non-empty"),
        ({"url": "ftp://example.test"}, "url must be http(s)"),
        ({"http_method": "FETCH"}, "unsupported HTTP method"),
    ],
)
def test_invalid_api_is_rejected(make_api, overrides, reason):
    with pytest.raises(InvalidExternalApiError, match=reason):
        make_api(**overrides)


def test_api_is_frozen_and_effective_by_default(make_api):
    api = make_api()
    assert api.effective and api.is_healthy
    assert api.http_method == "GET"
    with pytest.raises(FrozenInstanceError):
        api.effective = False  # type: ignore[misc]


def test_created_at_default_is_utc(make_api):
    api = ExternalApi(
        api_id="a",
        name="A",
        url="http://a.test",
        issuer="i",
        domain=ApiDomain.OTHER,
        keyword=ApiKeyword.LIST,
    )
    assert_strict_utc(api.created_at)
    assert make_api().updated_at is None


# ============================================================================
#                               HealthCheckResult
# ============================================================================


@pytest.mark.parametrize(
    "status, success",
    [
        (HealthStatus.HEALTHY, True),
        (HealthStatus.DEGRADED, True),
        (HealthStatus.UNHEALTHY, False),
        (HealthStatus.TIMEOUT, False),
        (HealthStatus.UNKNOWN, False),
    ],
)
def test_success_and_failure(make_result, status, success):
    result = make_result("a", status=status)
    assert result.is_success is success
    assert result.is_failure is not success


def test_status_flags():
    assert HealthStatus.HEALTHY.is_healthy
    assert not HealthStatus.DEGRADED.is_healthy
    assert HealthStatus.TIMEOUT.is_unhealthy
    assert HealthStatus.UNHEALTHY.is_unhealthy
    assert not HealthStatus.UNKNOWN.is_unhealthy


@pytest.mark.parametrize("ms, slow", [(None, False), (3000, False), (3001, True)])
def test_is_slow(make_result, ms, slow):
    assert make_result("a", response_time_ms=ms).is_slow is slow


@pytest.mark.parametrize(
    "overrides, score",
    [
        ({}, 100),
        ({"response_time_ms": 1500}, 95),
        ({"response_time_ms": 4000}, 90),
        ({"response_time_ms": 6000}, 80),
        ({"status": HealthStatus.DEGRADED, "response_time_ms": 6000}, 50),
        ({"status": HealthStatus.UNHEALTHY, "consecutive_failures": 1}, 20),
        ({"status": HealthStatus.UNHEALTHY, "consecutive_failures": 9}, 0),
        ({"status": HealthStatus.TIMEOUT, "response_time_ms": 10000}, 0),
        ({"status": HealthStatus.UNKNOWN, "response_time_ms": None}, 0),
    ],
)
def test_health_score(make_result, overrides, score):
    assert make_result("a", **overrides).health_score() == score


@pytest.mark.parametrize(
    "overrides, summary",
    [
        ({}, "healthy (120ms)"),
        ({"response_time_ms": None}, "healthy"),
        (
            {"status": HealthStatus.UNHEALTHY, "consecutive_failures": 3},
            "unhealthy (120ms) [3 consecutive failures]",
        ),
    ],
)
def test_summary(make_result, overrides, summary):
    assert make_result("a", **overrides).summary() == summary
