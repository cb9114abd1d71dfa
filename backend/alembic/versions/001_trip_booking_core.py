# backend/alembic/versions/001_trip_booking_core.py
"""Trip booking core - trips, schedule slots, bookings, history, outbox

Revision ID: 001_trip_booking_core
Revises:
Create Date: 2025-05-01 00:00:00.000000

Creates the tables of the availability and booking engine.

Design principle: the slot row is the source of truth for availability and
the booking row for who booked. A partial unique index on
(guide_id, scheduled_date, scheduled_time) over non-canceled bookings is the
database-level guard against double-booking a guide.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_trip_booking_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TRIP_TYPES = ("Adventure", "Cultural", "Food", "Historical", "Nature", "Relaxation", "Group")
ACTIVE_BOOKING_PREDICATE = sa.text("status <> 'canceled'")


def upgrade() -> None:
    """Create trip, slot, booking, history and outbox tables."""
    print("Creating trip booking core tables...")

    op.create_table(
        "trips",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("guide_id", sa.String(26), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("trip_type", sa.String(20), nullable=False),
        sa.Column("path", sa.JSON(), nullable=False),
        sa.Column("start_location", sa.JSON(), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("price >= 0", name="ck_trips_price_non_negative"),
        sa.CheckConstraint(
            "trip_type IN (" + ", ".join(f"'{t}'" for t in TRIP_TYPES) + ")",
            name="ck_trips_trip_type",
        ),
    )
    op.create_index("ix_trips_id", "trips", ["id"])
    op.create_index("ix_trips_guide_id", "trips", ["guide_id"])
    op.create_index("ix_trips_city", "trips", ["city"])
    op.create_index("ix_trips_trip_type", "trips", ["trip_type"])
    op.create_index("ix_trips_is_deleted", "trips", ["is_deleted"])
    op.create_index("ix_trips_created_at_id", "trips", ["created_at", "id"])

    op.create_table(
        "trip_schedule_slots",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("trip_id", sa.String(26), nullable=False),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("slot_time", sa.String(5), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["trip_id"], ["trips.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("trip_id", "slot_date", "slot_time", name="uq_trip_slot_instant"),
    )
    op.create_index("ix_trip_schedule_slots_id", "trip_schedule_slots", ["id"])
    # Guide schedule lookups go through (date, time) then join to trips
    op.create_index(
        "ix_trip_schedule_slots_date_time", "trip_schedule_slots", ["slot_date", "slot_time"]
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("tourist_id", sa.String(26), nullable=False),
        sa.Column("trip_id", sa.String(26), nullable=False),
        sa.Column("guide_id", sa.String(26), nullable=False),
        sa.Column("slot_id", sa.String(26), nullable=True),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("scheduled_time", sa.String(5), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("contact_phone", sa.String(40), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canceled_by_id", sa.String(26), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["trip_id"], ["trips.id"]),
        sa.ForeignKeyConstraint(["slot_id"], ["trip_schedule_slots.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'canceled')",
            name="ck_bookings_status",
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_tourist_id", "bookings", ["tourist_id"])
    op.create_index("ix_bookings_trip_id", "bookings", ["trip_id"])
    op.create_index("ix_bookings_guide_id", "bookings", ["guide_id"])
    op.create_index("ix_bookings_slot_id", "bookings", ["slot_id"])
    op.create_index("ix_bookings_scheduled_date", "bookings", ["scheduled_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index(
        "uq_bookings_guide_instant_active",
        "bookings",
        ["guide_id", "scheduled_date", "scheduled_time"],
        unique=True,
        postgresql_where=ACTIVE_BOOKING_PREDICATE,
        sqlite_where=ACTIVE_BOOKING_PREDICATE,
    )

    op.create_table(
        "booking_status_history",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("from_status", sa.String(20), nullable=True),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("actor_id", sa.String(26), nullable=True),
        sa.Column("actor_role", sa.String(30), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column(
            "occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_booking_status_history_booking_id", "booking_status_history", ["booking_id"]
    )

    op.create_table(
        "background_jobs",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "available_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_background_jobs_id", "background_jobs", ["id"])
    op.create_index("ix_background_jobs_type", "background_jobs", ["type"])

    print("Trip booking core tables created successfully!")


def downgrade() -> None:
    """Drop the trip booking core tables."""
    print("Dropping trip booking core tables...")

    op.drop_index("ix_background_jobs_type", table_name="background_jobs")
    op.drop_index("ix_background_jobs_id", table_name="background_jobs")
    op.drop_table("background_jobs")

    op.drop_index("ix_booking_status_history_booking_id", table_name="booking_status_history")
    op.drop_table("booking_status_history")

    op.drop_index("uq_bookings_guide_instant_active", table_name="bookings")
    for column in ("status", "scheduled_date", "slot_id", "guide_id", "trip_id", "tourist_id", "id"):
        op.drop_index(f"ix_bookings_{column}", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_trip_schedule_slots_date_time", table_name="trip_schedule_slots")
    op.drop_index("ix_trip_schedule_slots_id", table_name="trip_schedule_slots")
    op.drop_table("trip_schedule_slots")

    op.drop_index("ix_trips_created_at_id", table_name="trips")
    for column in ("is_deleted", "trip_type", "city", "guide_id", "id"):
        op.drop_index(f"ix_trips_{column}", table_name="trips")
    op.drop_table("trips")

    print("Trip booking core tables dropped successfully!")
