from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import Field, model_validator

from .common import APIModel, reject_explicit_nulls


class DoctorResponse(APIModel):
    id: int
    user_id: int
    full_name: Optional[str] = None
    email: Optional[str] = None
    specialization: str
    bio: Optional[str] = None
    consultation_fee: float
    room_number: Optional[str] = None


class DoctorProfileUpdate(APIModel):
    specialization: Optional[str] = Field(default=None, min_length=1, max_length=100)
    bio: Optional[str] = None
    consultation_fee: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    room_number: Optional[str] = Field(default=None, max_length=20)

    @model_validator(mode="after")
    def check_nulls(self):
        reject_explicit_nulls(self, "specialization", "consultation_fee")
        return self


class PatientResponse(APIModel):
    id: int
    user_id: int
    full_name: Optional[str] = None
    email: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = None
    address: Optional[str] = None
