# medcamp/schemas/user.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# App-level roles. Anonymous callers have no row.
Role = Literal["user", "admin"]


class CurrentUser(SQLModel):
    """
    The resolved caller handed to every protected route.

    A value object, not a table row: the role may have been repaired in
    memory when the database refused the backfill.
    """

    id: uuid.UUID
    email: str
    role: str | None


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: str
    name: str | None = None
    phone: str | None = None
    age: int | None = None
    address: str | None = None
    role: Role | None = None
    created_at: datetime


class ProfileUpdate(SQLModel):
    """
    Partial profile update for authenticated users.

    Email comes from Supabase Auth and role is admin-managed,
    so neither is accepted here.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    age: int | None = Field(default=None, ge=0, le=150)
    address: str | None = Field(default=None, max_length=300)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("phone", "address")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None
