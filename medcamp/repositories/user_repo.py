# medcamp/repositories/user_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select

from medcamp.models.user import Profile

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class UserRepository:
    """
    Data access layer for Profile (table `users`).

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        return session.get(Profile, user_id)

    def list(self, session: Session) -> list[Profile]:
        """All profiles, newest first."""
        stmt = select(Profile).order_by(Profile.created_at.desc())
        return session.exec(stmt).all()

    def insert_if_absent(
        self,
        session: Session,
        user_id: uuid.UUID,
        email: str,
        role: str,
    ) -> Profile | None:
        """
        Idempotent insert: `INSERT ... ON CONFLICT (id) DO NOTHING`.

        Two concurrent first requests for the same caller both succeed;
        the loser's insert is a no-op. Returns the row as the caller can
        see it afterwards (None if RLS hides it).
        """
        dialect = session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT[dialect]
        stmt = (
            insert(Profile)
            .values(
                id=user_id,
                email=email,
                role=role,
                created_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(index_elements=["id"])
        )
        session.exec(stmt)  # type: ignore[call-overload]
        session.commit()
        return session.get(Profile, user_id, populate_existing=True)

    def update_role(self, session: Session, user_id: uuid.UUID, role: str) -> None:
        stmt = update(Profile).where(Profile.id == user_id).values(role=role)
        session.exec(stmt)  # type: ignore[call-overload]
        session.commit()

    def update(self, session: Session, profile: Profile) -> Profile:
        """Persist changes to an existing Profile."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile
