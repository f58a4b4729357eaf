"""Create external_api and health_check_result tables

Revision ID: 3f9c2a7d41b0
Revises:
Create Date: 2026-10-19

"""

# pylint: disable=invalid-name

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from sysmgmt.infrastructure.db.sa_types import UTCDateTime

# deal with alembic stuff
# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d41b0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "external_api",
        sa.Column("api_id", sa.String(length=36), nullable=False, comment="Unique API identifier."),
        sa.Column("api_name", sa.String(length=255), nullable=False),
        sa.Column("api_url", sa.String(length=500), nullable=False),
        sa.Column("api_issuer", sa.String(length=255), nullable=False, comment="Who issues the API."),
        sa.Column("api_owner", sa.String(length=36), nullable=True, comment="Who registered the API."),
        sa.Column("api_domain", sa.String(length=32), nullable=False),
        sa.Column("api_keyword", sa.String(length=32), nullable=False),
        sa.Column("http_method", sa.String(length=10), nullable=False),
        sa.Column("api_description", sa.Text(), nullable=True),
        sa.Column(
            "api_effectiveness",
            sa.Boolean(),
            nullable=False,
            comment="Reflects the latest complete health check run.",
        ),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("api_id", name=op.f("pk_external_api")),
        comment="External APIs monitored by the health checker.",
    )

    op.create_table(
        "health_check_result",
        sa.Column("check_id", sa.String(length=36), nullable=False),
        sa.Column("api_id", sa.String(length=36), nullable=False),
        sa.Column("check_type", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("http_status_code", sa.Integer(), nullable=True),
        sa.Column("response_time_ms", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("error_details", sa.Text(), nullable=True),
        sa.Column("response_sample", sa.String(length=512), nullable=True),
        sa.Column("checked_at", UTCDateTime(), nullable=False),
        sa.Column("checked_by", sa.String(length=100), nullable=True),
        sa.Column("consecutive_failures", sa.Integer(), nullable=False),
        sa.Column("is_timeout", sa.Boolean(), nullable=False),
        sa.CheckConstraint(
            "consecutive_failures >= 0",
            name=op.f("ck_health_check_result_non_negative_failures"),
        ),
        sa.ForeignKeyConstraint(
            ["api_id"],
            ["external_api.api_id"],
            name=op.f("fk_health_check_result_api_id_external_api"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("check_id", name=op.f("pk_health_check_result")),
        comment="History of health checks, one row per check.",
    )
    op.create_index(
        "ix_health_check_result_api_id_checked_at",
        "health_check_result",
        ["api_id", "checked_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index(
        "ix_health_check_result_api_id_checked_at", table_name="health_check_result"
    )
    op.drop_table("health_check_result")
    op.drop_table("external_api")
