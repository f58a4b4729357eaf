"""Unit tests for `sysmgmt.config`."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from sysmgmt import config
from sysmgmt.config import (
    DatabaseUrlNotSetError,
    InvalidSettingError,
    Settings,
    UnknownProfileError,
    load_settings,
)


def test_default_profile_has_production_values():
    settings = load_settings()
    assert settings == Settings()
    assert settings.profile == "default"
    assert settings.request_timeout_s == 10.0
    assert settings.degraded_threshold_ms == 5000
    assert settings.unhealthy_ttl_s == 180
    assert settings.max_response_sample_length == 500
    assert settings.check_all_timeout_s == 60.0
    assert settings.scheduler_fixed_delay_s == 120.0
    assert settings.scheduler_initial_delay_s == 30.0
    assert settings.repository_backend == "sqlalchemy"
    assert settings.db_url is None


def test_test_profile():
    settings = load_settings("test")
    assert settings.profile == "test"
    assert settings.repository_backend == "memory"
    assert settings.scheduler_enabled is False
    assert settings.max_workers == 2
    # inherited from the default profile
    assert settings.degraded_threshold_ms == 5000


def test_unknown_profile():
    with pytest.raises(UnknownProfileError, match="staging") as excinfo:
        load_settings("staging")
    assert excinfo.value.profile == "staging"


def test_environment_is_not_read_without_environ(monkeypatch):
    monkeypatch.setenv("SYSMGMT_PROFILE", "test")
    monkeypatch.setenv("SYSMGMT_MAX_WORKERS", "9")
    assert load_settings() == Settings()


def test_environment_overrides_profile():
    environ = {
        "SYSMGMT_PROFILE": "dev",
        "SYSMGMT_MAX_WORKERS": "9",
        "SYSMGMT_SCHEDULER_ENABLED": "no",
        "SYSMGMT_DB_URL": "sqlite+pysqlite:///x.db",
        "UNRELATED": "1",
    }
    settings = load_settings(environ=environ)
    assert settings.profile == "dev"
    assert settings.max_workers == 9
    assert settings.scheduler_enabled is False
    assert settings.db_url == "sqlite+pysqlite:///x.db"
    assert settings.request_timeout_s == 5.0


def test_explicit_overrides_win():
    environ = {"SYSMGMT_MAX_WORKERS": "9"}
    assert load_settings("test", environ=environ, max_workers=3).max_workers == 3


@pytest.mark.parametrize(
    "environ",
    [
        {"SYSMGMT_MAX_WORKERS": "many"},
        {"SYSMGMT_SCHEDULER_ENABLED": "maybe"},
        {"SYSMGMT_REQUEST_TIMEOUT_S": "fast"},
    ],
)
def test_unparsable_environment_value(environ):
    with pytest.raises(InvalidSettingError, match=next(iter(environ))):
        load_settings(environ=environ)


def test_unknown_override():
    with pytest.raises(InvalidSettingError, match="colour"):
        load_settings(colour="blue")


@pytest.mark.parametrize(
    "overrides",
    [
        {"repository_backend": "redis"},
        {"request_timeout_s": 0},
        {"check_all_timeout_s": -1},
        {"max_workers": 0},
        {"max_response_sample_length": 0},
        {"unhealthy_ttl_s": -1},
        {"scheduler_fixed_delay_s": -0.5},
    ],
)
def test_invalid_values(overrides):
    with pytest.raises(InvalidSettingError):
        Settings(**overrides)


def test_require_db_url():
    assert Settings(db_url="sqlite://").require_db_url() == "sqlite://"
    with pytest.raises(DatabaseUrlNotSetError):
        Settings().require_db_url()


def test_env_var_name():
    assert config.env_var_name("unhealthy_ttl_s") == "SYSMGMT_UNHEALTHY_TTL_S"


@pytest.mark.parametrize(
    "environ, expected",
    [({}, "default"), ({"SYSMGMT_PROFILE": ""}, "default"), ({"SYSMGMT_PROFILE": "dev"}, "dev")],
)
def test_active_profile(environ, expected):
    assert config.active_profile(environ) == expected


def test_get_db_url():
    assert config.get_db_url({"SYSMGMT_DB_URL": "sqlite://"}) == "sqlite://"
    with pytest.raises(DatabaseUrlNotSetError):
        config.get_db_url({"SYSMGMT_DB_URL": ""})


def test_build_alembic_config():
    stream = io.StringIO()
    cfg = config.build_alembic_config("sqlite+pysqlite:///x.db", stdout=stream)
    assert cfg.get_main_option("sqlalchemy.url") == "sqlite+pysqlite:///x.db"
    script_location = Path(cfg.get_main_option("script_location"))
    assert (script_location / "env.py").is_file()
    assert cfg.stdout is stream


def test_build_alembic_config_without_url():
    assert config.build_alembic_config().get_main_option("sqlalchemy.url") is None
