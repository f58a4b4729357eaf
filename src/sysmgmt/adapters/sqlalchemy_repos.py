"""SQLAlchemy-backed repositories.

Both repositories take an Engine and run each operation in its own short
transaction (``engine.begin()``). Driver errors are mapped to the port's
exception hierarchy:

- `IntegrityError` on API insert    -> `DuplicateApiError`
- `IntegrityError` on result insert -> `ResultStoreError` (unregistered API)
- any other `DBAPIError`            -> `RegistryUnavailableError` /
                                       `ResultStoreUnavailableError`
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError

from sysmgmt.domain.models import (
    ApiDomain,
    ApiKeyword,
    ExternalApi,
    HealthCheckResult,
    HealthCheckType,
    HealthStatus,
    utc_now,
)
from sysmgmt.infrastructure.db.schema import external_api, health_check_result
from sysmgmt.interfaces.api_registry import (
    DuplicateApiError,
    ExternalApiRepository,
    RegistryUnavailableError,
)
from sysmgmt.interfaces.result_store import (
    HealthCheckResultRepository,
    ResultStoreError,
    ResultStoreUnavailableError,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


# --------------------------------------------------------------------------- #
# Row mapping
# --------------------------------------------------------------------------- #


def _api_to_row(api: ExternalApi) -> dict[str, Any]:
    return {
        "api_id": api.api_id,
        "api_name": api.name,
        "api_url": api.url,
        "api_issuer": api.issuer,
        "api_owner": api.owner,
        "api_domain": api.domain.name,
        "api_keyword": api.keyword.name,
        "http_method": api.http_method,
        "api_description": api.description,
        "api_effectiveness": api.effective,
        "created_at": api.created_at,
        "updated_at": api.updated_at,
    }


def _row_to_api(row: Mapping[str, Any]) -> ExternalApi:
    return ExternalApi(
        api_id=row["api_id"],
        name=row["api_name"],
        url=row["api_url"],
        issuer=row["api_issuer"],
        owner=row["api_owner"],
        domain=ApiDomain[row["api_domain"]],
        keyword=ApiKeyword[row["api_keyword"]],
        http_method=row["http_method"],
        description=row["api_description"],
        effective=bool(row["api_effectiveness"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _result_to_row(result: HealthCheckResult) -> dict[str, Any]:
    return {
        "check_id": result.check_id,
        "api_id": result.api_id,
        "check_type": result.check_type.name,
        "status": result.status.name,
        "http_status_code": result.http_status_code,
        "response_time_ms": result.response_time_ms,
        "error_message": result.error_message,
        "error_details": result.error_details,
        "response_sample": result.response_sample,
        "checked_at": result.checked_at,
        "checked_by": result.checked_by,
        "consecutive_failures": result.consecutive_failures,
        "is_timeout": result.is_timeout,
    }


def _row_to_result(row: Mapping[str, Any]) -> HealthCheckResult:
    return HealthCheckResult(
        check_id=row["check_id"],
        api_id=row["api_id"],
        check_type=HealthCheckType[row["check_type"]],
        status=HealthStatus[row["status"]],
        http_status_code=row["http_status_code"],
        response_time_ms=row["response_time_ms"],
        error_message=row["error_message"],
        error_details=row["error_details"],
        response_sample=row["response_sample"],
        checked_at=row["checked_at"],
        checked_by=row["checked_by"],
        consecutive_failures=row["consecutive_failures"],
        is_timeout=bool(row["is_timeout"]),
    )


# --------------------------------------------------------------------------- #
# Repositories
# --------------------------------------------------------------------------- #


class SqlAlchemyExternalApiRepository(ExternalApiRepository):
    """`ExternalApiRepository` over the ``external_api`` table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def add(self, api: ExternalApi) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(external_api).values(**_api_to_row(api)))
        except IntegrityError as e:
            raise DuplicateApiError(api.api_id) from e
        except DBAPIError as e:
            raise RegistryUnavailableError(str(e)) from e

    def save(self, api: ExternalApi) -> ExternalApi:
        try:
            with self.engine.begin() as conn:
                exists = conn.execute(
                    select(external_api.c.api_id).where(
                        external_api.c.api_id == api.api_id
                    )
                ).first()
                if exists is None:
                    conn.execute(insert(external_api).values(**_api_to_row(api)))
                    return api
                api = replace(api, updated_at=utc_now())
                row = _api_to_row(api)
                row.pop("created_at")
                conn.execute(
                    update(external_api)
                    .where(external_api.c.api_id == api.api_id)
                    .values(**row)
                )
                return api
        except DBAPIError as e:
            raise RegistryUnavailableError(str(e)) from e

    def get(self, api_id: str) -> ExternalApi | None:
        stmt = select(external_api).where(external_api.c.api_id == api_id)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except DBAPIError as e:
            raise RegistryUnavailableError(str(e)) from e
        return _row_to_api(row) if row is not None else None

    def list_all(self) -> list[ExternalApi]:
        return self._list(select(external_api))

    def list_effective(self) -> list[ExternalApi]:
        return self._list(
            select(external_api).where(external_api.c.api_effectiveness.is_(True))
        )

    def _list(self, stmt) -> list[ExternalApi]:
        stmt = stmt.order_by(external_api.c.api_id.asc())
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except DBAPIError as e:
            raise RegistryUnavailableError(str(e)) from e
        return [_row_to_api(row) for row in rows]


class SqlAlchemyHealthCheckResultRepository(HealthCheckResultRepository):
    """`HealthCheckResultRepository` over the ``health_check_result`` table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def save(self, result: HealthCheckResult) -> HealthCheckResult:
        if result.check_id is None:
            result = replace(result, check_id=str(uuid.uuid4()))
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(health_check_result).values(**_result_to_row(result)))
        except IntegrityError as e:
            raise ResultStoreError(
                f"cannot store result for unregistered API '{result.api_id}'"
            ) from e
        except DBAPIError as e:
            raise ResultStoreUnavailableError(str(e)) from e
        return result

    def latest(self, api_id: str) -> HealthCheckResult | None:
        history = self.history(api_id, limit=1)
        return history[0] if history else None

    def history(self, api_id: str, limit: int | None = None) -> list[HealthCheckResult]:
        if limit is not None and limit < 1:
            raise ValueError("limit cannot be <= 0")
        stmt = (
            select(health_check_result)
            .where(health_check_result.c.api_id == api_id)
            .order_by(health_check_result.c.checked_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except DBAPIError as e:
            raise ResultStoreUnavailableError(str(e)) from e
        return [_row_to_result(row) for row in rows]
