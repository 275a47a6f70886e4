# medcamp/models/appointment.py
import uuid
from datetime import datetime, timezone, date as Date, time as Time

from sqlalchemy import Index, text
from sqlmodel import SQLModel, Field

STATUS_BOOKED = "Booked"
STATUS_CONFIRMED = "Confirmed"
STATUS_COMPLETED = "Completed"
STATUS_CANCELLED = "Cancelled"

APPOINTMENT_STATUSES = (
    STATUS_BOOKED,
    STATUS_CONFIRMED,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
)

ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"

_ACTIVE_ONLY = text(f"status <> '{STATUS_CANCELLED}'")


class Appointment(SQLModel, table=True):
    """
    A patient's reserved slot at the camp.

    Slot rule:
      - at most one non-Cancelled appointment per (user_id, date, time).
        Enforced by the partial unique index below, so the database is the
        arbiter even when two bookings race.

    Lifecycle:
      - created by its owner with status "Booked"
      - status changed only by an admin
      - never deleted; "Cancelled" frees the slot
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            ACTIVE_SLOT_INDEX,
            "user_id",
            "date",
            "time",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    id: int | None = Field(default=None, primary_key=True)

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    date: Date = Field(description="Calendar date of the visit")
    time: Time = Field(description="Local time of day of the visit")

    # Booked | Confirmed | Completed | Cancelled
    status: str = Field(
        default=STATUS_BOOKED,
        index=True,
        description="Appointment status",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
