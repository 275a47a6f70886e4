# medcamp/services/user_service.py
from sqlmodel import Session

from medcamp.core.errors import ProfileUnavailable
from medcamp.models.user import Profile
from medcamp.repositories.user_repo import UserRepository
from medcamp.schemas.user import CurrentUser, ProfileUpdate


class UserService:
    """
    Business logic for profiles.

    Responsibilities:
      - self profile read / edit (email and role are not editable)
      - admin listing of every patient and administrator
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Self profile -----

    def get_me(self, session: Session, current_user: CurrentUser) -> Profile:
        """
        Return the caller's full profile row.

        The row was provisioned by the auth pipeline; if it has since become
        unreadable (deleted, hidden by RLS) the request fails like a
        missing profile would.
        """
        profile = self.repo.get_by_id(session, current_user.id)
        if profile is None:
            raise ProfileUnavailable()
        return profile

    def update_me(
        self,
        session: Session,
        current_user: CurrentUser,
        payload: ProfileUpdate,
    ) -> Profile:
        """Apply only the fields present in the payload."""
        profile = self.get_me(session, current_user)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)
        return self.repo.update(session, profile)

    # ----- Admin operations -----

    def list_users(self, session: Session) -> list[Profile]:
        """All profiles, newest first (admin only)."""
        return self.repo.list(session)
