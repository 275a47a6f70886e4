# medcamp/services/appointment_service.py
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from medcamp.core.errors import Conflict, NotFound, StoreError
from medcamp.models.appointment import Appointment, STATUS_BOOKED
from medcamp.repositories.appointment_repo import AppointmentRepository
from medcamp.schemas.appointment import (
    AppointmentAdminRead,
    AppointmentCreate,
    AppointmentStatusUpdate,
)
from medcamp.schemas.user import CurrentUser

logger = logging.getLogger(__name__)


class AppointmentService:
    """
    Business logic for appointments.

    Responsibilities:
      - Book a slot for the caller, rejecting double bookings
      - List the caller's own appointments
      - List every appointment with owner details (admin)
      - Change status (admin); no transition graph is enforced

    Role checks happen at the router (require_user / require_admin). The
    database's RLS policies are a second, independent layer, so queries
    here still filter by owner where it applies.
    """

    def __init__(self, repo: AppointmentRepository):
        self.repo = repo

    # -------- User-facing operations --------

    def create(
        self,
        session: Session,
        current_user: CurrentUser,
        payload: AppointmentCreate,
    ) -> Appointment:
        """
        Book (date, time) for the caller with status 'Booked'.

        The pre-check gives the common case a clean 409. Two requests
        racing past it are stopped by the partial unique index; that
        violation is reported as the same 409.

        Raises:
            Conflict(409): an active appointment already holds the slot.
            StoreError(500): any other integrity failure.
        """
        if self._slot_taken(session, current_user, payload):
            raise Conflict()

        appointment = Appointment(
            user_id=current_user.id,
            date=payload.date,
            time=payload.time,
            status=STATUS_BOOKED,
        )
        try:
            return self.repo.create(session, appointment)
        except IntegrityError as exc:
            session.rollback()
            if self._slot_taken(session, current_user, payload):
                raise Conflict()
            logger.error("Error creating appointment: %s", exc)
            raise StoreError("Error creating appointment", error=str(exc.orig))

    def list_own(self, session: Session, current_user: CurrentUser) -> list[Appointment]:
        return self.repo.list_for_user(session, current_user.id)

    # -------- Admin operations --------

    def list_all(self, session: Session) -> list[AppointmentAdminRead]:
        """
        Every appointment, with the owner's name/email flattened in as
        `user_name` / `user_email`. No nested owner object is returned.
        """
        rows = self.repo.list_all_with_owner(session)
        return [
            AppointmentAdminRead(
                **appointment.model_dump(),
                user_name=owner.name if owner else None,
                user_email=owner.email if owner else None,
            )
            for appointment, owner in rows
        ]

    def update_status(
        self,
        session: Session,
        appointment_id: int,
        payload: AppointmentStatusUpdate,
    ) -> Appointment:
        """
        Set any status, including the current one.

        Raises:
            NotFound(404): unknown id.
            Conflict(409): re-activating a cancelled appointment whose slot
                           has since been booked again.
        """
        appointment = self.repo.get_by_id(session, appointment_id)
        if not appointment:
            raise NotFound("Appointment not found")

        appointment.status = payload.status
        try:
            return self.repo.update(session, appointment)
        except IntegrityError:
            session.rollback()
            raise Conflict("Another active appointment already holds this slot.")

    # -------- Helpers --------

    def _slot_taken(
        self,
        session: Session,
        current_user: CurrentUser,
        payload: AppointmentCreate,
    ) -> bool:
        return bool(
            self.repo.list_active_in_slot(
                session,
                current_user.id,
                payload.date,
                payload.time,
            )
        )
