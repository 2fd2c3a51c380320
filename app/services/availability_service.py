from datetime import date, time
from typing import List

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import DoctorUnavailableError, NotFoundError
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.schedule import ScheduleWindow
from ..schemas.appointment import AvailabilityResponse
from .slots import compute_slots, day_of_week_for, format_hhmm


def get_doctor_or_404(db: Session, doctor_id: int) -> Doctor:
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise NotFoundError("Doctor not found")
    return doctor


def get_enabled_windows(db: Session, doctor_id: int, day_of_week: str) -> List[ScheduleWindow]:
    """Enabled windows for one doctor and weekday, earliest first."""
    return db.query(ScheduleWindow).filter(
        ScheduleWindow.doctor_id == doctor_id,
        ScheduleWindow.day_of_week == day_of_week,
        ScheduleWindow.is_available.is_(True),
    ).order_by(ScheduleWindow.start_time.asc()).all()


def get_booked_times(db: Session, doctor_id: int, appointment_date: date) -> List[time]:
    """Times already taken by non-cancelled appointments, ascending."""
    rows = db.query(Appointment.appointment_time).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.status != AppointmentStatus.CANCELLED,
    ).order_by(Appointment.appointment_time.asc()).all()
    return [row.appointment_time for row in rows]


def resolve_availability(db: Session, doctor_id: int, appointment_date: date) -> AvailabilityResponse:
    """
    Open and booked slots for a doctor on a date.

    Raises DoctorUnavailableError when the doctor has no enabled window on
    that weekday. Read-only; a concurrent booking may take a returned slot.
    """
    get_doctor_or_404(db, doctor_id)

    day_of_week = day_of_week_for(appointment_date)
    windows = get_enabled_windows(db, doctor_id, day_of_week)
    if not windows:
        raise DoctorUnavailableError(day_of_week)

    booked_times = get_booked_times(db, doctor_id, appointment_date)

    available_slots: List[time] = []
    for window in windows:
        available_slots.extend(
            compute_slots(
                window.start_time,
                window.end_time,
                settings.SLOT_INTERVAL_MINUTES,
                booked_times,
            )
        )

    return AvailabilityResponse(
        doctor_id=doctor_id,
        appointment_date=appointment_date,
        day_of_week=day_of_week,
        schedule_start=format_hhmm(windows[0].start_time),
        schedule_end=format_hhmm(max(window.end_time for window in windows)),
        available_slots=available_slots,
        booked_slots=booked_times,
    )
