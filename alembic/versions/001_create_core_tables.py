"""Create core studio tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates profiles, services, bookings, orders, payments and the two
       integration audit tables (webhook_events, sync_log).
How:   PostgreSQL UUID keys for profiles, JSONB for onboarding answers and
       raw webhook payloads, TIMESTAMP WITH TIME ZONE everywhere.

Rollback: downgrade() drops every table in reverse dependency order.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'client'")),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "notify_email", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        # Onboarding answers, including birthday as "MM/DD"
        sa.Column("onboarding_data", postgresql.JSONB(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        # lash | jewelry | crochet | consulting
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_in_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "duration_minutes", sa.Integer(), nullable=False, server_default=sa.text("60")
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.PrimaryKeyConstraint("id", name="pk_services"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("staff_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("service_id", sa.Integer(), nullable=False),
        # pending → confirmed → in_progress → completed | cancelled | no_show
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("starts_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("total_in_cents", sa.Integer(), nullable=False),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("square_order_id", sa.String(100), nullable=True),
        sa.Column("deposit_paid_in_cents", sa.Integer(), nullable=True),
        sa.Column("deposit_paid_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_bookings"),
        sa.ForeignKeyConstraint(
            ["client_id"], ["profiles.id"],
            name="fk_bookings_client_id_profiles", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["staff_id"], ["profiles.id"],
            name="fk_bookings_staff_id_profiles", ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["service_id"], ["services.id"],
            name="fk_bookings_service_id_services", ondelete="RESTRICT",
        ),
    )
    # Reminder query: status='confirmed' AND starts_at in a window
    op.create_index("idx_bookings_status_starts_at", "bookings", ["status", "starts_at"])
    op.create_index("idx_bookings_square_order_id", "bookings", ["square_order_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False, server_default=sa.text("''")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("total_in_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("square_order_id", sa.String(100), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_orders"),
        sa.ForeignKeyConstraint(
            ["client_id"], ["profiles.id"],
            name="fk_orders_client_id_profiles", ondelete="CASCADE",
        ),
    )
    op.create_index("idx_orders_square_order_id", "orders", ["square_order_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("booking_id", sa.Integer(), nullable=True),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount_in_cents", sa.Integer(), nullable=False),
        sa.Column("tip_in_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "refunded_in_cents", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "method", sa.String(30), nullable=False, server_default=sa.text("'square_other'")
        ),
        # pending | paid | failed | refunded | partially_refunded
        sa.Column("status", sa.String(30), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("square_payment_id", sa.String(100), nullable=True),
        sa.Column("square_order_id", sa.String(100), nullable=True),
        sa.Column("square_receipt_url", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("refunded_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
        sa.ForeignKeyConstraint(
            ["booking_id"], ["bookings.id"],
            name="fk_payments_booking_id_bookings", ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["client_id"], ["profiles.id"],
            name="fk_payments_client_id_profiles", ondelete="CASCADE",
        ),
    )
    op.create_index("idx_payments_square_payment_id", "payments", ["square_payment_id"])

    op.create_table(
        "webhook_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("external_event_id", sa.String(200), nullable=True),
        sa.Column("event_type", sa.String(200), nullable=False),
        sa.Column("payload", postgresql.JSONB(), nullable=False),
        sa.Column("is_processed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("processed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_webhook_events"),
    )
    op.create_index(
        "idx_webhook_events_provider_external_id",
        "webhook_events",
        ["provider", "external_event_id"],
    )

    op.create_table(
        "sync_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("direction", sa.String(10), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("local_id", sa.String(100), nullable=True),
        sa.Column("remote_id", sa.String(100), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("payload", postgresql.JSONB(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_sync_log"),
    )
    # Dedup lookups: entity_type + local_id + status='success'
    op.create_index("idx_sync_log_entity", "sync_log", ["entity_type", "local_id", "status"])
    op.create_index("idx_sync_log_provider", "sync_log", ["provider"])


def downgrade() -> None:
    """Drop every table. Destructive: all studio data is lost."""
    op.drop_index("idx_sync_log_provider", table_name="sync_log")
    op.drop_index("idx_sync_log_entity", table_name="sync_log")
    op.drop_table("sync_log")
    op.drop_index("idx_webhook_events_provider_external_id", table_name="webhook_events")
    op.drop_table("webhook_events")
    op.drop_index("idx_payments_square_payment_id", table_name="payments")
    op.drop_table("payments")
    op.drop_index("idx_orders_square_order_id", table_name="orders")
    op.drop_table("orders")
    op.drop_index("idx_bookings_square_order_id", table_name="bookings")
    op.drop_index("idx_bookings_status_starts_at", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("services")
    op.drop_table("profiles")
