"""Unit tests specific to the in-memory repositories."""

import pytest

from sysmgmt.adapters.memory import (
    InMemoryExternalApiRepository,
    InMemoryHealthCheckResultRepository,
)
from sysmgmt.interfaces.result_store import ResultStoreError


def test_seeded_registry(make_api):
    apis = [make_api(), make_api(effective=False)]
    repo = InMemoryExternalApiRepository(apis)
    assert repo.list_all() == sorted(apis, key=lambda api: api.api_id)
    assert repo.list_effective() == [apis[0]]


def test_equal_timestamps_newest_insertion_first(make_result):
    repo = InMemoryHealthCheckResultRepository()
    first = repo.save(make_result("a"))
    second = repo.save(make_result("a"))
    assert [r.check_id for r in repo.history("a")] == [second.check_id, first.check_id]


def test_history_limit_validation():
    with pytest.raises(ValueError):
        InMemoryHealthCheckResultRepository().history("a", limit=0)


def test_result_store_without_registry_accepts_any_api(make_result):
    repo = InMemoryHealthCheckResultRepository()
    assert repo.save(make_result("anything")).check_id


def test_result_store_checks_the_registry_at_save_time(make_api, make_result):
    apis = InMemoryExternalApiRepository()
    repo = InMemoryHealthCheckResultRepository(apis)
    with pytest.raises(ResultStoreError):
        repo.save(make_result("late"))

    apis.add(make_api(api_id="late"))
    assert repo.save(make_result("late")).api_id == "late"
