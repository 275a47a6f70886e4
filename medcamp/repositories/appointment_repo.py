# medcamp/repositories/appointment_repo.py
import uuid
from datetime import date as Date, time as Time

from sqlmodel import Session, select

from medcamp.models.appointment import Appointment, STATUS_CANCELLED
from medcamp.models.user import Profile


class AppointmentRepository:
    """
    Data access layer for appointments.

    Every listing is ordered by (date, time) ascending; id breaks ties so
    the order is stable.
    """

    def get_by_id(self, session: Session, appointment_id: int) -> Appointment | None:
        return session.get(Appointment, appointment_id)

    def list_active_in_slot(
        self,
        session: Session,
        user_id: uuid.UUID,
        date: Date,
        time: Time,
    ) -> list[Appointment]:
        """Non-Cancelled appointments occupying the (user, date, time) slot."""
        stmt = select(Appointment).where(
            Appointment.user_id == user_id,
            Appointment.date == date,
            Appointment.time == time,
            Appointment.status != STATUS_CANCELLED,
        )
        return session.exec(stmt).all()

    def list_for_user(self, session: Session, user_id: uuid.UUID) -> list[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.user_id == user_id)
            .order_by(Appointment.date, Appointment.time, Appointment.id)
        )
        return session.exec(stmt).all()

    def list_all_with_owner(
        self,
        session: Session,
    ) -> list[tuple[Appointment, Profile | None]]:
        """
        All appointments joined with their owner's profile.

        Outer join: an appointment whose owner row is not visible to the
        caller still appears, with owner None.
        """
        stmt = (
            select(Appointment, Profile)
            .join(Profile, Profile.id == Appointment.user_id, isouter=True)
            .order_by(Appointment.date, Appointment.time, Appointment.id)
        )
        return session.exec(stmt).all()

    def create(self, session: Session, appointment: Appointment) -> Appointment:
        """Insert a new Appointment and return the persisted row."""
        session.add(appointment)
        session.commit()
        session.refresh(appointment)
        return appointment

    def update(self, session: Session, appointment: Appointment) -> Appointment:
        session.add(appointment)
        session.commit()
        session.refresh(appointment)
        return appointment
