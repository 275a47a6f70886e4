# medcamp/routers/appointments.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from medcamp.core.auth import get_scoped_session, require_admin, require_user
from medcamp.repositories.appointment_repo import AppointmentRepository
from medcamp.schemas.appointment import (
    AppointmentAdminRead,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatusUpdate,
)
from medcamp.schemas.user import CurrentUser
from medcamp.services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])

repo = AppointmentRepository()
service = AppointmentService(repo)


# -------- User-facing endpoints --------


@router.post(
    "",
    response_model=AppointmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_appointment(
    payload: AppointmentCreate,
    session: Session = Depends(get_scoped_session),
    current_user: CurrentUser = Depends(require_user),
):
    """
    Book a slot for the current user.

    Auth:
      - Only role='user' (patient) can book.

    Errors:
      - 400 malformed date/time
      - 409 an active appointment already holds this date and time
    """
    return service.create(session, current_user, payload)


@router.get("/my", response_model=list[AppointmentRead])
def list_my_appointments(
    session: Session = Depends(get_scoped_session),
    current_user: CurrentUser = Depends(require_user),
):
    """
    List the authenticated user's appointments, soonest first.
    """
    return service.list_own(session, current_user)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[AppointmentAdminRead],
    dependencies=[Depends(require_admin)],
)
def list_all_appointments(session: Session = Depends(get_scoped_session)):
    """
    List all appointments with the owner's name and email (admin only).
    """
    return service.list_all(session)


@router.put(
    "/{appointment_id}/status",
    response_model=AppointmentRead,
    dependencies=[Depends(require_admin)],
)
def update_appointment_status(
    appointment_id: int,
    payload: AppointmentStatusUpdate,
    session: Session = Depends(get_scoped_session),
):
    """
    Update appointment status (admin only).

    Any of Booked, Confirmed, Completed, Cancelled may follow any other.
    Cancelling frees the slot for rebooking.
    """
    return service.update_status(session, appointment_id, payload)
