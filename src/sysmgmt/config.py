"""Configuration for SYSMGMT.

Settings are resolved from named profiles instead of ambient globals. A
profile is a small mapping of overrides applied on top of the production
defaults; the resolved `Settings` value is then passed explicitly to whatever
needs it (the bootstrap, the service layer, the test base class).

Resolution order (later wins):
    field defaults -> "default" profile -> named profile
    -> ``SYSMGMT_<FIELD>`` environment variables -> explicit overrides
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from importlib.resources import files
from typing import Any, TextIO

from alembic.config import Config

ENV_PREFIX = "SYSMGMT_"  # pragma: no mutate
PROFILE_ENV_VAR = "SYSMGMT_PROFILE"  # pragma: no mutate
DB_URL_ENV_VAR = "SYSMGMT_DB_URL"  # pragma: no mutate

DEFAULT_PROFILE = "default"
TEST_PROFILE = "test"

REPOSITORY_BACKENDS = frozenset({"memory", "sqlalchemy"})

ALEMBIC_URL_KEY = "sqlalchemy.url"  # pragma: no mutate
ALEMBIC_SCRIPT_LOCATION_KEY = "script_location"  # pragma: no mutate

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class ConfigError(Exception):
    """Base class for configuration errors."""


class DatabaseUrlNotSetError(ConfigError):
    """Raised when no database URL is configured (``SYSMGMT_DB_URL``)."""


class UnknownProfileError(ConfigError):
    """Raised when a profile name is not registered in `PROFILES`."""

    def __init__(self, profile: str) -> None:
        super().__init__(
            f"Unknown profile {profile!r}; expected one of {sorted(PROFILES)}"
        )
        self.profile = profile


class InvalidSettingError(ConfigError):
    """Raised when a setting value cannot be parsed or is out of range."""


@dataclass(frozen=True)
class Settings:  # pylint: disable=too-many-instance-attributes
    """Resolved configuration for one run of the service (or one test).

    Field defaults are the production values.
    """

    profile: str = DEFAULT_PROFILE
    db_url: str | None = None
    repository_backend: str = "sqlalchemy"
    request_timeout_s: float = 10.0
    degraded_threshold_ms: int = 5000
    unhealthy_ttl_s: int = 180
    max_response_sample_length: int = 500
    check_all_timeout_s: float = 60.0
    max_workers: int = 8
    scheduler_enabled: bool = True
    scheduler_fixed_delay_s: float = 120.0
    scheduler_initial_delay_s: float = 30.0

    def __post_init__(self) -> None:
        if self.repository_backend not in REPOSITORY_BACKENDS:
            raise InvalidSettingError(
                f"repository_backend must be one of {sorted(REPOSITORY_BACKENDS)}, "
                f"got {self.repository_backend!r}"
            )
        for name in ("request_timeout_s", "check_all_timeout_s"):
            if getattr(self, name) <= 0:
                raise InvalidSettingError(f"{name} must be > 0")
        for name in ("max_workers", "max_response_sample_length"):
            if getattr(self, name) < 1:
                raise InvalidSettingError(f"{name} must be >= 1")
        for name in (
            "degraded_threshold_ms",
            "unhealthy_ttl_s",
            "scheduler_fixed_delay_s",
            "scheduler_initial_delay_s",
        ):
            if getattr(self, name) < 0:
                raise InvalidSettingError(f"{name} must be >= 0")

    def require_db_url(self) -> str:
        """Return the database URL or raise `DatabaseUrlNotSetError`."""
        if not self.db_url:
            raise DatabaseUrlNotSetError
        return self.db_url


#: Registered profiles. Each maps field names to overrides of the defaults.
PROFILES: dict[str, Mapping[str, Any]] = {
    DEFAULT_PROFILE: {},
    "dev": {
        "db_url": "sqlite+pysqlite:///sysmgmt-dev.db",
        "request_timeout_s": 5.0,
        "unhealthy_ttl_s": 60,
        "scheduler_fixed_delay_s": 30.0,
        "scheduler_initial_delay_s": 0.0,
    },
    TEST_PROFILE: {
        "db_url": "sqlite+pysqlite:///:memory:",
        "repository_backend": "memory",
        "request_timeout_s": 1.0,
        "unhealthy_ttl_s": 30,
        "check_all_timeout_s": 5.0,
        "max_workers": 2,
        "scheduler_enabled": False,
        "scheduler_fixed_delay_s": 0.0,
        "scheduler_initial_delay_s": 0.0,
    },
}


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


# keyed by the (string) annotation of each Settings field
_COERCERS: dict[str, Callable[[str], Any]] = {
    "str": str,
    "str | None": str,
    "int": int,
    "float": float,
    "bool": _parse_bool,
}

SETTING_NAMES = tuple(f.name for f in fields(Settings) if f.name != "profile")


def env_var_name(field_name: str) -> str:
    """Return the environment variable that overrides `field_name`."""
    return f"{ENV_PREFIX}{field_name.upper()}"


def settings_from_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``SYSMGMT_<FIELD>`` overrides from `environ`.

    Args:
        environ: Mapping to read (usually ``os.environ``).

    Returns:
        A dict of field name to parsed value, only for variables that are set.

    Raises:
        InvalidSettingError: If a value cannot be parsed for its field type.
    """
    values: dict[str, Any] = {}
    for field in fields(Settings):
        if field.name == "profile":
            continue
        key = env_var_name(field.name)
        if key not in environ:
            continue
        coerce = _COERCERS[str(field.type)]
        try:
            values[field.name] = coerce(environ[key])
        except ValueError as e:
            raise InvalidSettingError(f"{key}: {e}") from e
    return values


def active_profile(environ: Mapping[str, str] | None = None) -> str:
    """Return the profile named by ``SYSMGMT_PROFILE`` (default: "default")."""
    environ = os.environ if environ is None else environ
    return environ.get(PROFILE_ENV_VAR) or DEFAULT_PROFILE


def load_settings(
    profile: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> Settings:
    """Resolve `Settings` for a profile.

    Args:
        profile: Profile name. When None, it is taken from ``SYSMGMT_PROFILE``
            in `environ` (or "default" when `environ` is None too).
        environ: Environment mapping to read ``SYSMGMT_*`` overrides from.
            None means the environment is not consulted at all.
        **overrides: Explicit field values; these win over everything else.

    Returns:
        The resolved, validated settings.

    Raises:
        UnknownProfileError: If the profile is not registered.
        InvalidSettingError: On an unknown override name or an invalid value.
    """
    if profile is None:
        profile = active_profile(environ) if environ is not None else DEFAULT_PROFILE
    if profile not in PROFILES:
        raise UnknownProfileError(profile)

    if unknown := sorted(set(overrides) - set(SETTING_NAMES)):
        raise InvalidSettingError(f"Unknown setting(s): {', '.join(unknown)}")

    values: dict[str, Any] = {**PROFILES[DEFAULT_PROFILE], **PROFILES[profile]}
    if environ is not None:
        values.update(settings_from_environ(environ))
    values.update(overrides)
    return Settings(profile=profile, **values)


def get_db_url(environ: Mapping[str, str] | None = None) -> str:
    """Get the database URL from the environment.

    Returns:
        The value of the `SYSMGMT_DB_URL` environment variable.

    Raises:
        DatabaseUrlNotSetError: If `SYSMGMT_DB_URL` is not set.
    """
    environ = os.environ if environ is None else environ
    if not (url := environ.get(DB_URL_ENV_VAR)):
        raise DatabaseUrlNotSetError
    return url


def build_alembic_config(
    db_url: str | None = None, stdout: TextIO = sys.stdout
) -> Config:
    """Build an Alembic `Config` object for SYSMGMT's migrations.

    Sets only Alembic "main" options:
    - `sqlalchemy.url` → the database URL you pass
    - `script_location` → SYSMGMT's packaged Alembic scripts

    Args:
        db_url: SQLAlchemy database URL. Can be `None` (default) only in
            contexts where Alembic won't need to connect to the DB.
        stdout: Text stream Alembic will write status lines to. Defaults to
            `sys.stdout`; override in tests to capture output.

    Returns:
        An `alembic.config.Config` pointing to SYSMGMT's migration scripts.
    """
    cfg = Config(stdout=stdout)
    if db_url is not None:
        cfg.set_main_option(ALEMBIC_URL_KEY, db_url)
    cfg.set_main_option(
        ALEMBIC_SCRIPT_LOCATION_KEY,
        str(files("sysmgmt.infrastructure.db.alembic")),
    )
    return cfg
