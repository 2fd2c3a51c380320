from datetime import date, datetime, time
from typing import List, Optional

from pydantic import Field, field_validator

from ..models.appointment import AppointmentStatus
from .common import APIModel

MAX_REASON_LENGTH = 1000


class BookingRequest(APIModel):
    doctor_id: int
    appointment_date: date = Field(alias="date")
    appointment_time: time = Field(alias="time")
    reason_for_visit: Optional[str] = None

    @field_validator("reason_for_visit")
    @classmethod
    def normalize_reason(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            return None
        if len(normalized) > MAX_REASON_LENGTH:
            raise ValueError(f"Reason for visit must be {MAX_REASON_LENGTH} characters or fewer")
        return normalized

    @field_validator("appointment_time")
    @classmethod
    def drop_microseconds(cls, value: time) -> time:
        return value.replace(microsecond=0, tzinfo=None)


class AppointmentResponse(APIModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_date: date
    appointment_time: time
    status: AppointmentStatus
    reason_for_visit: Optional[str] = None
    created_at: Optional[datetime] = None


class AppointmentStatusUpdate(APIModel):
    status: AppointmentStatus


class AvailabilityResponse(APIModel):
    doctor_id: int
    appointment_date: date = Field(alias="date")
    day_of_week: str
    schedule_start: Optional[str] = None
    schedule_end: Optional[str] = None
    available_slots: List[time] = []
    booked_slots: List[time] = []
