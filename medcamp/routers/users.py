# medcamp/routers/users.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from medcamp.core.auth import get_current_user, get_scoped_session, require_admin
from medcamp.repositories.user_repo import UserRepository
from medcamp.schemas.user import CurrentUser, ProfileRead, ProfileUpdate
from medcamp.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ProfileRead)
def read_me(
    session: Session = Depends(get_scoped_session),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires valid Supabase token (any role).
    """
    return service.get_me(session, current_user)


@router.patch("/me", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_scoped_session),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Update the authenticated user's profile (partial update).

    Editable: name, phone, age, address.
    """
    return service.update_me(session, current_user, payload)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[ProfileRead],
    dependencies=[Depends(require_admin)],
)
def list_users(session: Session = Depends(get_scoped_session)):
    """
    List all users (admin only), newest first.
    """
    return service.list_users(session)
