"""Initial schema: templates, booking_links, bookings.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ACTIVE_SLOT_WHERE = sa.text("status <> 'cancelled'")


def upgrade() -> None:
    op.create_table(
        "templates",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("schedule", sa.JSON(), nullable=False),
        sa.Column("blackout_days", sa.JSON(), nullable=False),
        sa.Column("booking_cutoff_date", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_templates_name"), "templates", ["name"], unique=True)

    op.create_table(
        "booking_links",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("template_id", sa.String(), nullable=False),
        sa.Column("url_slug", sa.String(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("require_advance_booking", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("advance_hours", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_booking_links_name"), "booking_links", ["name"], unique=True)
    op.create_index(op.f("ix_booking_links_template_id"), "booking_links", ["template_id"], unique=False)
    op.create_index(op.f("ix_booking_links_url_slug"), "booking_links", ["url_slug"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("booking_link_id", sa.String(), nullable=False),
        sa.Column("selected_date", sa.String(), nullable=False),
        sa.Column("selected_time", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("cancellation_token", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="confirmed"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bookings_booking_link_id"), "bookings", ["booking_link_id"], unique=False)
    op.create_index(op.f("ix_bookings_selected_date"), "bookings", ["selected_date"], unique=False)
    op.create_index(op.f("ix_bookings_cancellation_token"), "bookings", ["cancellation_token"], unique=False)
    op.create_index(
        "uq_bookings_active_slot",
        "bookings",
        ["booking_link_id", "selected_date", "selected_time"],
        unique=True,
        postgresql_where=_ACTIVE_SLOT_WHERE,
        sqlite_where=_ACTIVE_SLOT_WHERE,
    )


def downgrade() -> None:
    op.drop_index("uq_bookings_active_slot", table_name="bookings")
    op.drop_index(op.f("ix_bookings_cancellation_token"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_selected_date"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_booking_link_id"), table_name="bookings")
    op.drop_table("bookings")
    op.drop_index(op.f("ix_booking_links_url_slug"), table_name="booking_links")
    op.drop_index(op.f("ix_booking_links_template_id"), table_name="booking_links")
    op.drop_index(op.f("ix_booking_links_name"), table_name="booking_links")
    op.drop_table("booking_links")
    op.drop_index(op.f("ix_templates_name"), table_name="templates")
    op.drop_table("templates")
