"""Initial booking schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _owner_fk() -> sa.Column:
    return sa.Column(
        "user_id",
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    user_role_enum = sa.Enum("admin", "member", name="userrole")
    user_status_enum = sa.Enum("invited", "active", "suspended", name="userstatus")

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("status", user_status_enum, nullable=False),
        sa.Column("timezone", sa.String(length=64)),
        *_timestamps(),
    )

    op.create_table(
        "weekly_availability",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _owner_fk(),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("slot_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("buffer_before_minutes", sa.Integer(), nullable=False),
        sa.Column("buffer_after_minutes", sa.Integer(), nullable=False),
        sa.Column("max_appointments", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_weekly_availability_owner_day",
        "weekly_availability",
        ["user_id", "day_of_week"],
    )

    op.create_table(
        "availability_exceptions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _owner_fk(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("start_time", sa.String(length=5)),
        sa.Column("end_time", sa.String(length=5)),
        sa.Column("reason", sa.String(length=255)),
        *_timestamps(),
    )
    op.create_index(
        "ix_availability_exceptions_owner_date",
        "availability_exceptions",
        ["user_id", "date"],
    )

    appointment_status_enum = sa.Enum(
        "pending",
        "confirmed",
        "cancelled",
        "completed",
        "no_show",
        name="appointmentstatus",
    )
    appointment_type_enum = sa.Enum("free", "paid", name="appointmenttype")
    payment_status_enum = sa.Enum("pending", "paid", name="paymentstatus")

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _owner_fk(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("location", sa.String(length=255)),
        sa.Column("meeting_url", sa.String(length=500)),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("status", appointment_status_enum, nullable=False),
        sa.Column("type", appointment_type_enum, nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("attendee_name", sa.String(length=255)),
        sa.Column("attendee_email", sa.String(length=320)),
        sa.Column("attendee_phone", sa.String(length=32)),
        sa.Column("notes", sa.Text()),
        sa.Column("is_paid", sa.Boolean(), nullable=False),
        sa.Column("payment_status", payment_status_enum, nullable=False),
        sa.Column("cancellation_reason", sa.Text()),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index(
        "ix_appointments_owner_start", "appointments", ["user_id", "start_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_appointments_owner_start", table_name="appointments")
    op.drop_table("appointments")
    sa.Enum(name="paymentstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="appointmenttype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="appointmentstatus").drop(op.get_bind(), checkfirst=True)

    op.drop_index(
        "ix_availability_exceptions_owner_date", table_name="availability_exceptions"
    )
    op.drop_table("availability_exceptions")
    op.drop_index(
        "ix_weekly_availability_owner_day", table_name="weekly_availability"
    )
    op.drop_table("weekly_availability")

    op.drop_table("users")
    sa.Enum(name="userstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
