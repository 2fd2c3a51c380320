from .user import User, RefreshToken
from .doctor import Doctor
from .patient import Patient
from .schedule import ScheduleWindow
from .appointment import Appointment, AppointmentStatus

__all__ = [
    "User",
    "RefreshToken",
    "Doctor",
    "Patient",
    "ScheduleWindow",
    "Appointment",
    "AppointmentStatus",
]
