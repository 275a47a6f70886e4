# medcamp/services/profile_resolver.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from medcamp.core.errors import ProfileUnavailable
from medcamp.core.identity import Principal
from medcamp.models.user import DEFAULT_ROLE
from medcamp.repositories.user_repo import UserRepository
from medcamp.schemas.user import CurrentUser

logger = logging.getLogger(__name__)


class ProfileResolver:
    """
    Map a verified Principal to the caller's application profile.

    Sign-up in Supabase Auth and the `users` row are created separately,
    so the row can be missing. Resolution repairs that:

      - found, role set      -> use as is
      - found, role missing  -> best-effort backfill to "user"; if the
                                write fails, continue with "user" in memory
      - not found            -> idempotent insert with role "user"; if that
                                fails the request fails (ProfileUnavailable)
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def resolve(self, session: Session, principal: Principal) -> CurrentUser:
        profile = self.repo.get_by_id(session, principal.subject_id)

        if profile is None:
            logger.warning(
                "Profile %s missing; creating default profile with role=%s",
                principal.subject_id,
                DEFAULT_ROLE,
            )
            try:
                profile = self.repo.insert_if_absent(
                    session,
                    principal.subject_id,
                    principal.email,
                    DEFAULT_ROLE,
                )
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error(
                    "Failed to create default profile %s. "
                    "Check RLS policies on public.users: %s",
                    principal.subject_id,
                    exc,
                )
                raise ProfileUnavailable()

            if profile is None:
                raise ProfileUnavailable()

        user = CurrentUser(id=profile.id, email=profile.email, role=profile.role)

        if not user.role:
            try:
                self.repo.update_role(session, user.id, DEFAULT_ROLE)
            except SQLAlchemyError as exc:
                session.rollback()
                logger.warning(
                    "Could not backfill role for %s, using %r for this request: %s",
                    user.id,
                    DEFAULT_ROLE,
                    exc,
                )
            user.role = DEFAULT_ROLE

        return user
