from datetime import time
from typing import Literal, Optional

from pydantic import field_validator, model_validator

from .common import APIModel, reject_explicit_nulls

DayOfWeek = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def whole_minutes(value: time) -> time:
    """Schedule boundaries are minute-aligned; bookings are compared per minute."""
    if value.second or value.microsecond:
        raise ValueError("Schedule times must be whole minutes (HH:MM)")
    return value.replace(tzinfo=None)


class ScheduleWindowCreate(APIModel):
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_available: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def require_whole_minutes(cls, value: time) -> time:
        return whole_minutes(value)


class ScheduleWindowUpdate(APIModel):
    day_of_week: Optional[DayOfWeek] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_available: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def require_whole_minutes(cls, value: Optional[time]) -> Optional[time]:
        if value is None:
            return None
        return whole_minutes(value)

    @model_validator(mode="after")
    def check_nulls(self):
        reject_explicit_nulls(self, "day_of_week", "start_time", "end_time", "is_available")
        return self


class ScheduleWindowResponse(APIModel):
    id: int
    doctor_id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_available: bool
