"""Table definitions for SYSMGMT.

| Table                 | Purpose                                   |
|-----------------------|-------------------------------------------|
| external_api          | APIs registered for monitoring            |
| health_check_result   | one row per check, newest read via index  |

Enum columns store the enum member *name* (e.g. ``"HEALTHY"``).
The migration in ``alembic/versions`` must stay in sync with this module.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)

from .metadata import metadata
from .sa_types import UTCDateTime

__all__ = ["external_api", "health_check_result"]

external_api = Table(
    "external_api",
    metadata,
    Column("api_id", String(36), primary_key=True, comment="Unique API identifier."),
    Column("api_name", String(255), nullable=False),
    Column("api_url", String(500), nullable=False),
    Column("api_issuer", String(255), nullable=False, comment="Who issues the API."),
    Column("api_owner", String(36), nullable=True, comment="Who registered the API."),
    Column("api_domain", String(32), nullable=False),
    Column("api_keyword", String(32), nullable=False),
    Column("http_method", String(10), nullable=False),
    Column("api_description", Text, nullable=True),
    Column(
        "api_effectiveness",
        Boolean,
        nullable=False,
        comment="Reflects the latest complete health check run.",
    ),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    comment="External APIs monitored by the health checker.",
)

health_check_result = Table(
    "health_check_result",
    metadata,
    Column("check_id", String(36), primary_key=True),
    Column(
        "api_id",
        String(36),
        ForeignKey("external_api.api_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("check_type", String(16), nullable=False),
    Column("status", String(16), nullable=False),
    Column("http_status_code", Integer, nullable=True),
    Column("response_time_ms", Integer, nullable=True),
    Column("error_message", Text, nullable=True),
    Column("error_details", Text, nullable=True),
    Column("response_sample", String(512), nullable=True),
    Column("checked_at", UTCDateTime(), nullable=False),
    Column("checked_by", String(100), nullable=True),
    Column("consecutive_failures", Integer, nullable=False),
    Column("is_timeout", Boolean, nullable=False),
    CheckConstraint("consecutive_failures >= 0", name="non_negative_failures"),
    Index("ix_health_check_result_api_id_checked_at", "api_id", "checked_at"),
    comment="History of health checks, one row per check.",
)
