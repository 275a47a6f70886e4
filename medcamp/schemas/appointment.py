# medcamp/schemas/appointment.py
import re
import uuid
from datetime import datetime, date as Date, time as Time
from typing import Literal

from pydantic import ConfigDict, field_serializer, field_validator
from sqlmodel import SQLModel

AppointmentStatus = Literal["Booked", "Confirmed", "Completed", "Cancelled"]

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


class AppointmentCreate(SQLModel):
    """
    Payload for booking a slot.

    Formats are strict: "YYYY-MM-DD" and "HH:MM" (zero-padded).
    After the pattern check the values must also be a real date / clock
    time, so "2024-13-40" and "25:00" are rejected too.

    Backend derives:
      - user_id from token
      - status = 'Booked'
    """

    model_config = ConfigDict(extra="forbid")

    date: Date
    time: Time

    @field_validator("date", mode="before")
    @classmethod
    def date_format(cls, v: object) -> object:
        if not isinstance(v, str) or not _DATE_PATTERN.match(v):
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v

    @field_validator("time", mode="before")
    @classmethod
    def time_format(cls, v: object) -> object:
        if not isinstance(v, str) or not _TIME_PATTERN.match(v):
            raise ValueError("Time must be in HH:MM format")
        return v


class AppointmentRead(SQLModel):
    id: int
    user_id: uuid.UUID
    date: Date
    time: Time
    status: AppointmentStatus
    created_at: datetime

    @field_serializer("time")
    def serialize_time(self, value: Time) -> str:
        return value.strftime("%H:%M")


class AppointmentAdminRead(AppointmentRead):
    """
    Admin view: owner's name/email flattened onto the appointment.
    Either may be null when the owner has no profile details yet.
    """

    user_name: str | None = None
    user_email: str | None = None


class AppointmentStatusUpdate(SQLModel):
    """
    Admin payload to change appointment status.

    Any status may move to any other; only the value set is checked.
    """

    model_config = ConfigDict(extra="forbid")

    status: AppointmentStatus
