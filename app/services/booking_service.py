from datetime import date
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import ConflictError, DoctorUnavailableError, NotFoundError, ValidationError
from ..core.security import AuthContext, AuthorizationError, UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..schemas.appointment import BookingRequest
from .availability_service import get_doctor_or_404, get_enabled_windows
from .notifications import NotificationDispatcher, booking_confirmation
from .profile_service import get_doctor_by_user_id, get_patient_by_user_id
from .slots import day_of_week_for, format_hhmm, truncate_to_minute

logger = logging.getLogger(__name__)

# current status -> {target status: role allowed to make the move}
STATUS_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.COMPLETED: UserRole.DOCTOR,
        AppointmentStatus.NO_SHOW: UserRole.DOCTOR,
        AppointmentStatus.CANCELLED: UserRole.PATIENT,
    },
}

DOCTOR_STATUS_TARGETS = (AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW)


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message


class BookingService:
    def __init__(self, db: Session, notifier: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifier = notifier

    def book_appointment(self, ctx: AuthContext, request: BookingRequest, today: Optional[date] = None) -> Appointment:
        """
        Validate a booking request and commit it.

        Checks run in order and each one stops the booking: past date,
        schedule for the weekday, time inside a window, slot not taken.
        The unique index on live slots settles races the pre-check misses.
        """
        patient = get_patient_by_user_id(self.db, ctx.user_id)
        doctor = get_doctor_or_404(self.db, request.doctor_id)

        today = today or date.today()
        if request.appointment_date < today:
            raise ValidationError("Cannot book an appointment in the past")

        day_of_week = day_of_week_for(request.appointment_date)
        windows = get_enabled_windows(self.db, doctor.id, day_of_week)
        if not windows:
            raise DoctorUnavailableError(day_of_week)

        requested = truncate_to_minute(request.appointment_time)
        inside_window = any(
            window.start_time <= requested < truncate_to_minute(window.end_time)
            for window in windows
        )
        if not inside_window:
            ranges = " or ".join(
                f"{format_hhmm(window.start_time)} and {format_hhmm(window.end_time)}" for window in windows
            )
            raise ValidationError(f"Appointment time must be between {ranges}")

        if self._find_active_appointment(doctor.id, request.appointment_date, request.appointment_time):
            logger.warning(
                f"Slot conflict for doctor {doctor.id} on {request.appointment_date} at {request.appointment_time}"
            )
            raise ConflictError()

        appointment = Appointment(
            doctor_id=doctor.id,
            patient_id=patient.id,
            appointment_date=request.appointment_date,
            appointment_time=request.appointment_time,
            status=AppointmentStatus.SCHEDULED,
            reason_for_visit=request.reason_for_visit,
        )
        self.db.add(appointment)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if not _is_unique_violation(exc):
                raise
            logger.warning(
                f"Unique index rejected booking for doctor {doctor.id} on "
                f"{request.appointment_date} at {request.appointment_time}"
            )
            raise ConflictError() from exc
        self.db.refresh(appointment)

        logger.info(
            f"Booked appointment {appointment.id}: patient {patient.id} with doctor {doctor.id} "
            f"on {appointment.appointment_date} at {appointment.appointment_time}"
        )
        self._notify_booking(patient, doctor, appointment)
        return appointment

    def cancel_appointment(self, ctx: AuthContext, appointment_id: int) -> Appointment:
        """Patient cancels one of their own scheduled appointments."""
        if ctx.role != UserRole.PATIENT:
            raise AuthorizationError("Only patients can cancel appointments")

        patient = get_patient_by_user_id(self.db, ctx.user_id)
        appointment = self._get_appointment_or_404(appointment_id)
        if appointment.patient_id != patient.id:
            raise AuthorizationError("You can only cancel your own appointments")

        if appointment.status == AppointmentStatus.CANCELLED:
            raise ValidationError("Appointment is already cancelled")
        if appointment.status == AppointmentStatus.COMPLETED:
            raise ValidationError("Cannot cancel a completed appointment")
        self._check_transition(appointment.status, AppointmentStatus.CANCELLED, ctx.role)

        appointment.status = AppointmentStatus.CANCELLED
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} cancelled by patient {patient.id}")
        return appointment

    def update_appointment_status(
        self,
        ctx: AuthContext,
        appointment_id: int,
        new_status: AppointmentStatus,
    ) -> Appointment:
        """Doctor marks one of their scheduled appointments completed or no-show."""
        if ctx.role != UserRole.DOCTOR:
            raise AuthorizationError("Only doctors can update appointment status")
        if new_status not in DOCTOR_STATUS_TARGETS:
            raise ValidationError(
                f"Invalid status. Allowed values: {', '.join(target.value for target in DOCTOR_STATUS_TARGETS)}"
            )

        doctor = get_doctor_by_user_id(self.db, ctx.user_id)
        appointment = self._get_appointment_or_404(appointment_id)
        if appointment.doctor_id != doctor.id:
            raise AuthorizationError("You can only update your own appointments")

        self._check_transition(appointment.status, new_status, ctx.role)

        appointment.status = new_status
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} marked {new_status.value} by doctor {doctor.id}")
        return appointment

    def list_patient_appointments(self, ctx: AuthContext) -> List[Appointment]:
        patient = get_patient_by_user_id(self.db, ctx.user_id)
        return self.db.query(Appointment).filter(
            Appointment.patient_id == patient.id
        ).order_by(
            Appointment.appointment_date.desc(),
            Appointment.appointment_time.desc(),
        ).all()

    def list_doctor_appointments(
        self,
        ctx: AuthContext,
        status: Optional[AppointmentStatus] = None,
        on_date: Optional[date] = None,
    ) -> List[Appointment]:
        doctor = get_doctor_by_user_id(self.db, ctx.user_id)
        query = self.db.query(Appointment).filter(Appointment.doctor_id == doctor.id)
        if status is not None:
            query = query.filter(Appointment.status == status)
        if on_date is not None:
            query = query.filter(Appointment.appointment_date == on_date)
        return query.order_by(
            Appointment.appointment_date.asc(),
            Appointment.appointment_time.asc(),
        ).all()

    def _find_active_appointment(self, doctor_id: int, appointment_date, appointment_time) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == appointment_date,
            Appointment.appointment_time == appointment_time,
            Appointment.status != AppointmentStatus.CANCELLED,
        ).first()

    def _check_transition(self, current: AppointmentStatus, target: AppointmentStatus, role: UserRole) -> None:
        allowed = STATUS_TRANSITIONS.get(current, {})
        if target not in allowed:
            raise ValidationError(f"Cannot change a {current.value} appointment to {target.value}")
        if allowed[target] != role:
            raise AuthorizationError(f"Only a {allowed[target].value} can mark an appointment {target.value}")

    def _get_appointment_or_404(self, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def _notify_booking(self, patient: Patient, doctor: Doctor, appointment: Appointment) -> None:
        if self.notifier is None:
            return
        try:
            message = booking_confirmation(
                to_email=patient.user.email,
                to_name=patient.user.full_name,
                doctor_name=doctor.full_name or "Dr. Unknown",
                appointment_date=appointment.appointment_date,
                appointment_time=appointment.appointment_time,
                reason=appointment.reason_for_visit,
            )
            self.notifier.emit(message)
        except Exception:
            logger.exception(f"Could not queue confirmation for appointment {appointment.id}")
