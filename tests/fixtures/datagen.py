"""Fixtures for generating test data."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from sysmgmt.domain.models import (
    ApiDomain,
    ApiKeyword,
    ExternalApi,
    HealthCheckResult,
    HealthCheckType,
    HealthStatus,
)

# pylint: disable=redefined-outer-name

_counter = itertools.count(1)

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def api_id_like() -> str:
    """Return a unique, deterministic api_id."""
    return f"api-{next(_counter):04d}"


@pytest.fixture
def make_api() -> Callable[..., ExternalApi]:
    """Factory fixture: a valid, effective, LOW priority `ExternalApi`.

    Keyword overrides adjust any field, e.g.
    ``make_api(keyword=ApiKeyword.REAL_TIME)`` for a HIGH priority API.
    """

    def _make_api(**overrides: Any) -> ExternalApi:
        api_id = overrides.pop("api_id", None) or api_id_like()
        base: dict[str, Any] = {
            "api_id": api_id,
            "name": f"Test API {api_id}",
            "url": f"https://api.example.test/{api_id}",
            "issuer": "Test Issuer",
            "domain": ApiDomain.OTHER,
            "keyword": ApiKeyword.REST_API,
            "created_at": BASE_TIME,
        }
        base.update(overrides)
        return ExternalApi(**base)

    return _make_api


@pytest.fixture
def make_result() -> Callable[..., HealthCheckResult]:
    """Factory fixture: a HEALTHY static `HealthCheckResult`.

    ``minutes=n`` shifts ``checked_at`` n minutes after a fixed base time.
    """

    def _make_result(api_id: str, minutes: int = 0, **overrides: Any) -> HealthCheckResult:
        base: dict[str, Any] = {
            "api_id": api_id,
            "check_type": HealthCheckType.STATIC,
            "status": HealthStatus.HEALTHY,
            "checked_at": BASE_TIME + timedelta(minutes=minutes),
            "http_status_code": 200,
            "response_time_ms": 120,
        }
        base.update(overrides)
        return HealthCheckResult(**base)

    return _make_result
