# medcamp/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field

DEFAULT_ROLE = "user"


class Profile(SQLModel, table=True):
    """
    Application profile for a patient or administrator.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from token "sub")

    Role:
      - "user" | "admin"
      - nullable in storage; a missing role is backfilled to "user"
        on the caller's next authenticated request.

    This table is *not* responsible for password hashes. Supabase Auth
    stores the password in its own schema.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    age: int | None = Field(default=None)
    address: str | None = Field(default=None)

    # Application role (not the Postgres role used for RLS)
    role: str | None = Field(
        default=DEFAULT_ROLE,
        index=True,
        description="Application role: user | admin",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
