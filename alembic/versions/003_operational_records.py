"""Workshop records, settings and notifications."""
from __future__ import annotations

from typing import List

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "003_operational_records"
down_revision = "002_billing"
branch_labels = None
depends_on = None


def _owned_columns() -> List[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _status_column(default: str = "pending") -> sa.Column:
    return sa.Column(
        "status",
        sa.String(length=32),
        nullable=False,
        server_default=sa.text(f"'{default}'"),
    )


def _vehicle_fk() -> sa.Column:
    return sa.Column(
        "vehicle_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("vehicles.id", ondelete="SET NULL"),
        nullable=True,
    )


TABLES = (
    "locations",
    "vehicles",
    "service_jobs",
    "customer_requirements",
    "call_follow_ups",
    "invoices",
    "notifications",
    "system_settings",
)


def upgrade() -> None:
    op.create_table(
        "locations",
        *_owned_columns(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
    )
    op.create_table(
        "vehicles",
        *_owned_columns(),
        sa.Column("registration_number", sa.String(), nullable=False),
        sa.Column("make", sa.String(), nullable=True),
        sa.Column("model", sa.String(), nullable=True),
        sa.Column("customer_name", sa.String(), nullable=False),
        sa.Column("customer_phone", sa.String(), nullable=True),
        sa.Column("accessories", sa.Text(), nullable=True),
        _status_column(),
        sa.Column("expected_delivery", sa.Date(), nullable=True),
    )
    op.create_table(
        "service_jobs",
        *_owned_columns(),
        _vehicle_fk(),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _status_column(),
        sa.Column("scheduled_for", sa.Date(), nullable=True),
    )
    op.create_table(
        "customer_requirements",
        *_owned_columns(),
        sa.Column("customer_name", sa.String(), nullable=False),
        sa.Column("customer_phone", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        _status_column(),
    )
    op.create_table(
        "call_follow_ups",
        *_owned_columns(),
        sa.Column("customer_name", sa.String(), nullable=False),
        sa.Column("customer_phone", sa.String(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _status_column(),
        sa.Column("follow_up_on", sa.Date(), nullable=True),
    )
    op.create_table(
        "invoices",
        *_owned_columns(),
        _vehicle_fk(),
        sa.Column("invoice_number", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_table(
        "notifications",
        *_owned_columns(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_table(
        "system_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("setting_key", sa.String(), nullable=False),
        sa.Column("setting_value", sa.Text(), nullable=True),
        sa.Column(
            "setting_group",
            sa.String(),
            nullable=False,
            server_default=sa.text("'general'"),
        ),
        sa.UniqueConstraint("tenant_id", "setting_key", name="uq_setting_tenant_key"),
    )

    for table in TABLES:
        op.create_index(f"ix_{table}_tenant_id", table, ["tenant_id"])


def downgrade() -> None:
    for table in reversed(TABLES):
        op.drop_index(f"ix_{table}_tenant_id", table_name=table)
        op.drop_table(table)
