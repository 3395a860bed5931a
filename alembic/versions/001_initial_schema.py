"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all initial tables for Homebirth Match:
- Profiles and availability
- Postal code centroids
- Bookings
- Payments and processed webhook events
- Admin (audit logs, disputes)
"""

from typing import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ACTIVE_PAIR_PREDICATE = sa.text("status IN ('REQUESTED', 'CONFIRMED')")


def upgrade() -> None:
    """Create all database tables."""

    # ==================== PROFILES ====================
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="CLIENT"),
        sa.Column("email", sa.String(255)),
        sa.Column("display_name", sa.String(200)),
        sa.Column("city", sa.String(100)),
        sa.Column("postal_code", sa.String(5)),
        sa.Column("radius_km", sa.Integer, server_default="25"),
        sa.Column("bio", sa.Text),
        sa.Column("qualifications", postgresql.JSONB, server_default="[]"),
        sa.Column("services", postgresql.JSONB, server_default="[]"),
        sa.Column("phone", sa.String(40)),
        sa.Column("price_model", sa.String(20)),
        sa.Column("offers_homebirth", sa.Boolean, server_default=sa.true()),
        sa.Column("photo_url", sa.Text),
        sa.Column("verification_status", sa.String(20), server_default="DRAFT"),
        sa.Column("completed", sa.Boolean, server_default=sa.false()),
        sa.Column("plan", sa.String(10), server_default="FREE"),
        sa.Column("pro_until", sa.DateTime(timezone=True)),
        sa.Column("stripe_customer_id", sa.String(100), unique=True),
        sa.Column("stripe_subscription_id", sa.String(100)),
        sa.Column("calendar_token", sa.String(64), unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_role", "profiles", ["role"])
    op.create_index("ix_profiles_email", "profiles", ["email"])
    op.create_index("ix_profiles_city", "profiles", ["city"])
    op.create_index("ix_profiles_postal_code", "profiles", ["postal_code"])
    op.create_index("ix_profiles_completed", "profiles", ["completed"])
    op.create_index("ix_profiles_calendar_token", "profiles", ["calendar_token"])

    op.create_table(
        "availability",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "midwife_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("note", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("end_date >= start_date", name="ck_availability_range"),
    )
    op.create_index("ix_availability_midwife_id", "availability", ["midwife_id"])
    op.create_index("ix_availability_start_date", "availability", ["start_date"])
    op.create_index("ix_availability_end_date", "availability", ["end_date"])

    # ==================== LOCATIONS ====================
    op.create_table(
        "postal_codes",
        sa.Column("postal_code", sa.String(5), primary_key=True),
        sa.Column("city", sa.String(100)),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
    )

    # ==================== BOOKINGS ====================
    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("midwife_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="REQUESTED"),
        sa.Column("note", sa.Text),
        sa.Column("canceled_by", sa.String(20)),
        sa.Column("is_boosted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("checkout_session_id", sa.String(255), unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint(
            "(status = 'PAID' AND paid_at IS NOT NULL) OR (status <> 'PAID' AND paid_at IS NULL)",
            name="ck_bookings_paid_at_matches_status",
        ),
    )
    op.create_index("ix_bookings_client_id", "bookings", ["client_id"])
    op.create_index("ix_bookings_midwife_id", "bookings", ["midwife_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"])
    op.create_index("ix_bookings_pair_created", "bookings", ["client_id", "midwife_id", "created_at"])
    op.create_index(
        "uq_bookings_active_pair",
        "bookings",
        ["client_id", "midwife_id"],
        unique=True,
        postgresql_where=ACTIVE_PAIR_PREDICATE,
    )

    # ==================== PAYMENTS ====================
    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("amount_cents", sa.Integer, nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), server_default="eur"),
        sa.Column("stripe_checkout_session_id", sa.String(255), unique=True, nullable=False),
        sa.Column("stripe_payment_intent_id", sa.String(255)),
        sa.Column("gateway_response", postgresql.JSONB),
        sa.Column("status", sa.String(20), server_default="completed"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])
    op.create_index("ix_payments_created_at", "payments", ["created_at"])

    op.create_table(
        "processed_webhook_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("event_id", sa.String(255), unique=True, nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== ADMIN ====================
    op.create_table(
        "audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id")),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_id", postgresql.UUID(as_uuid=True)),
        sa.Column("old_values", postgresql.JSONB),
        sa.Column("new_values", postgresql.JSONB),
        sa.Column("ip_address", sa.String(45)),
        sa.Column("user_agent", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_resource_type", "audit_logs", ["resource_type"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    op.create_table(
        "disputes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("raised_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), server_default="OPEN"),
        sa.Column("resolution", sa.Text),
        sa.Column("resolved_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id")),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_disputes_booking_id", "disputes", ["booking_id"])
    op.create_index("ix_disputes_status", "disputes", ["status"])


def downgrade() -> None:
    """Drop all database tables in reverse order."""
    op.drop_table("disputes")
    op.drop_table("audit_logs")
    op.drop_table("processed_webhook_events")
    op.drop_table("payments")
    op.drop_index("uq_bookings_active_pair", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("postal_codes")
    op.drop_table("availability")
    op.drop_table("profiles")
