"""Unit tests for `ApiStatusService` with the registry and cache mocked."""

from __future__ import annotations

import logging

import pytest

from sysmgmt.domain.models import ApiDomain, ApiKeyword, HealthCheckPriority
from sysmgmt.domain.status import SeverityLevel, SystemHealth
from sysmgmt.interfaces.api_registry import ExternalApiRepository, RegistryUnavailableError
from sysmgmt.interfaces.health_cache import HealthCacheError, UnhealthyApiCache
from sysmgmt.service_layer.api_status import ApiStatusService
from sysmgmt.testing import UnitTestBase
from tests.fixtures.datagen import BASE_TIME


class _ApiStatusServiceTestBase(UnitTestBase):
    def build_subject(self) -> ApiStatusService:
        return ApiStatusService(
            apis=self.mock("apis", ExternalApiRepository),
            cache=self.mock("cache", UnhealthyApiCache),
            clock=lambda: BASE_TIME,
        )

    def unhealthy(self, *api_ids: str) -> None:
        self.mocks.cache.unhealthy_ids.return_value = sorted(api_ids)


class TestAvailability(_ApiStatusServiceTestBase):
    def test_available_unless_cached(self):
        self.mocks.cache.is_unhealthy.side_effect = lambda api_id: api_id == "down"

        assert self.subject.is_api_available("up")
        assert not self.subject.is_api_available("down")

    def test_cache_failure_reads_as_available(self, caplog):
        self.mocks.cache.is_unhealthy.side_effect = HealthCacheError("gone")

        with caplog.at_level(logging.WARNING, logger="sysmgmt.service_layer.api_status"):
            assert self.subject.is_api_available("a")
        assert "assuming available" in caplog.text

    def test_batch_uses_one_cache_read(self):
        self.unhealthy("b")

        assert self.subject.check_apis_availability(["a", "b", "c"]) == {
            "a": True,
            "b": False,
            "c": True,
        }
        self.mocks.cache.unhealthy_ids.assert_called_once_with()

    def test_empty_batch(self):
        assert self.subject.check_apis_availability([]) == {}
        self.assert_no_unexpected_calls("cache")

    def test_batch_on_cache_failure(self):
        self.mocks.cache.unhealthy_ids.side_effect = HealthCacheError("gone")
        assert self.subject.check_apis_availability(["a", "b"]) == {"a": True, "b": True}
        assert self.subject.unavailable_api_ids() == []


class TestListings(_ApiStatusServiceTestBase):
    def seed(self, make_api) -> None:
        """Four effective APIs, with the real-time radar cached as unhealthy."""
        self.weather = make_api(
            api_id="weather", domain=ApiDomain.WEATHER, keyword=ApiKeyword.FORECAST
        )
        self.buses = make_api(
            api_id="buses", domain=ApiDomain.TRAFFIC, keyword=ApiKeyword.REAL_TIME
        )
        self.museums = make_api(api_id="museums", domain=ApiDomain.CULTURE)
        self.radar = make_api(
            api_id="radar", domain=ApiDomain.WEATHER, keyword=ApiKeyword.REAL_TIME
        )
        self.mocks.apis.list_effective.return_value = [
            self.buses,
            self.museums,
            self.radar,
            self.weather,
        ]
        self.unhealthy("radar")

    def test_by_domain_skips_unavailable(self, make_api):
        self.seed(make_api)
        assert self.subject.available_apis_by_domain(ApiDomain.WEATHER) == [self.weather]
        assert self.subject.available_apis_by_domain(ApiDomain.FINANCE) == []

    def test_by_keyword(self, make_api):
        self.seed(make_api)
        assert self.subject.available_apis_by_keyword(ApiKeyword.REAL_TIME) == [self.buses]

    def test_by_priority(self, make_api):
        self.seed(make_api)
        assert self.subject.available_apis_by_priority() == {
            HealthCheckPriority.HIGH: [self.buses],
            HealthCheckPriority.LOW: [self.museums],
            HealthCheckPriority.MEDIUM: [self.weather],
        }

    def test_registry_failure_propagates(self):
        self.mocks.apis.list_effective.side_effect = RegistryUnavailableError("down")
        with pytest.raises(RegistryUnavailableError):
            self.subject.available_apis()


class TestDetails(_ApiStatusServiceTestBase):
    def test_uncached_api_is_available(self):
        self.mocks.cache.snapshot.return_value = None

        details = self.subject.api_status_details("a")

        assert details.available
        assert details.status == "HEALTHY"
        assert details.message == "API is currently available"
        assert details.checked_at == BASE_TIME
        assert details.severity is SeverityLevel.NONE
        self.mocks.cache.ttl_remaining.assert_not_called()

    def test_cached_api_reports_its_last_failure(self):
        self.mocks.cache.snapshot.return_value = {
            "status": "TIMEOUT",
            "error_message": "Request failed: ReadTimeout",
            "response_time_ms": 10_000,
            "last_check": "2025-01-01T11:58:00+00:00",
            "consecutive_failures": 3,
        }
        self.mocks.cache.ttl_remaining.return_value = 42.0

        details = self.subject.api_status_details("a")

        assert not details.available
        assert details.status == "TIMEOUT"
        assert details.message == "Request failed: ReadTimeout"
        assert details.response_time_ms == 10_000
        assert details.consecutive_failures == 3
        assert details.checked_at.isoformat() == "2025-01-01T11:58:00+00:00"
        assert details.ttl_s == 42.0
        assert details.severity is SeverityLevel.HIGH

    def test_sparse_snapshot_gets_defaults(self):
        self.mocks.cache.snapshot.return_value = {"last_check": "not a date"}
        self.mocks.cache.ttl_remaining.return_value = None

        details = self.subject.api_status_details("a")

        assert not details.available
        assert details.status == "UNKNOWN"
        assert details.message == "API is currently unavailable"
        assert details.checked_at == BASE_TIME
        assert details.consecutive_failures == 0

    def test_cache_failure(self):
        self.mocks.cache.snapshot.side_effect = HealthCacheError("gone")

        details = self.subject.api_status_details("a")

        assert details.available
        assert details.status == "UNKNOWN"
        assert details.message == "Failed to check API status"


class TestSummary(_ApiStatusServiceTestBase):
    def test_counts_only_effective_apis(self, make_api):
        self.mocks.apis.list_all.return_value = [
            make_api(api_id="a", domain=ApiDomain.WEATHER),
            make_api(api_id="b", domain=ApiDomain.WEATHER),
            make_api(api_id="c", keyword=ApiKeyword.STREAMING),
            make_api(api_id="d"),
            make_api(api_id="retired", effective=False),
        ]
        self.unhealthy("d", "retired")

        summary = self.subject.status_summary()

        assert summary.total_apis == 5
        assert summary.effective_apis == 4
        assert summary.available_apis == 3
        assert summary.unavailable_apis == 1
        assert summary.availability_rate == 75.0
        assert summary.system_health is SystemHealth.CRITICAL
        assert summary.domain_stats[ApiDomain.WEATHER] == 2
        assert summary.domain_stats[ApiDomain.OTHER] == 1
        assert summary.domain_stats[ApiDomain.FINANCE] == 0
        assert set(summary.domain_stats) == set(ApiDomain)
        assert summary.priority_stats == {
            HealthCheckPriority.HIGH: 1,
            HealthCheckPriority.MEDIUM: 2,
            HealthCheckPriority.LOW: 0,
        }
        assert summary.last_updated == BASE_TIME

    def test_empty_registry(self):
        self.mocks.apis.list_all.return_value = []
        self.unhealthy()

        summary = self.subject.status_summary()

        assert summary.availability_rate == 100.0
        assert summary.system_health is SystemHealth.UNKNOWN


class TestRecoveryEstimates(_ApiStatusServiceTestBase):
    def test_only_live_entries(self):
        self.unhealthy("a", "b", "c")
        self.mocks.cache.ttl_remaining.side_effect = {"a": 12.5, "b": None, "c": 0.0}.get

        assert self.subject.recovery_estimates() == {"a": 12.5}

    def test_ttl_read_failure_skips_the_api(self):
        self.unhealthy("a", "b")
        self.mocks.cache.ttl_remaining.side_effect = [HealthCacheError("gone"), 5.0]

        assert self.subject.recovery_estimates() == {"b": 5.0}
