"""Global pytest fixtures for SYSMGMT."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


pytest_plugins = [
    "pytester",
    "tests.fixtures.sqlite",
    "tests.fixtures.datagen",
]


@pytest.fixture(autouse=True)
def _isolate_sysmgmt_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's ``SYSMGMT_*`` variables out of the test run."""
    for name in list(os.environ):
        if name.startswith("SYSMGMT_"):
            monkeypatch.delenv(name)


# Helper to route to an existing engine fixture by name
@pytest.fixture
def engine(request: pytest.FixtureRequest) -> Engine:
    """Indirection fixture to parametrize over engine-providing fixtures.

    Example:
        ```py
        @pytest.mark.parametrize("engine", ["sqlite_engine_memory", "sqlite_engine_file"], indirect=True)
        def test_something(engine): ...
        ```
    """
    return request.getfixturevalue(request.param)
