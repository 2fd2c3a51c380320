from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...api.deps import get_doctor_context, get_schedule_editor_context
from ...core.database import get_db
from ...core.security import AuthContext
from ...models.appointment import AppointmentStatus
from ...schemas.appointment import AppointmentResponse, AppointmentStatusUpdate
from ...schemas.profile import DoctorProfileUpdate, DoctorResponse
from ...schemas.schedule import ScheduleWindowCreate, ScheduleWindowResponse, ScheduleWindowUpdate
from ...services.booking_service import BookingService
from ...services.profile_service import get_doctor_by_user_id, list_doctors, update_doctor_profile
from ...services.schedule_service import ScheduleService

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.get("", response_model=List[DoctorResponse])
def get_all_doctors(db: Session = Depends(get_db)):
    """List all doctors."""
    return list_doctors(db)


@router.get("/me", response_model=DoctorResponse)
def get_my_profile(
    ctx: AuthContext = Depends(get_doctor_context),
    db: Session = Depends(get_db),
):
    return get_doctor_by_user_id(db, ctx.user_id)


@router.patch("/me", response_model=DoctorResponse)
def update_my_profile(
    changes: DoctorProfileUpdate,
    ctx: AuthContext = Depends(get_doctor_context),
    db: Session = Depends(get_db),
):
    """Update only the profile fields present in the request body."""
    return update_doctor_profile(db, ctx.user_id, changes)


@router.get("/me/schedule", response_model=List[ScheduleWindowResponse])
def get_my_schedule(
    ctx: AuthContext = Depends(get_doctor_context),
    db: Session = Depends(get_db),
):
    doctor = get_doctor_by_user_id(db, ctx.user_id)
    return ScheduleService(db).get_weekly_schedule(doctor.id)


@router.get("/appointments", response_model=List[AppointmentResponse])
def get_my_appointments(
    status_filter: Optional[AppointmentStatus] = Query(default=None, alias="status"),
    on_date: Optional[date] = Query(default=None, alias="date"),
    ctx: AuthContext = Depends(get_doctor_context),
    db: Session = Depends(get_db),
):
    """Appointments of the calling doctor, ordered by date and time."""
    return BookingService(db).list_doctor_appointments(ctx, status_filter, on_date)


@router.put("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    ctx: AuthContext = Depends(get_doctor_context),
    db: Session = Depends(get_db),
):
    return BookingService(db).update_appointment_status(ctx, appointment_id, update.status)


@router.get("/{doctor_id}/schedule", response_model=List[ScheduleWindowResponse])
def get_doctor_schedule(doctor_id: int, db: Session = Depends(get_db)):
    """Weekly schedule of a doctor, Monday first."""
    return ScheduleService(db).get_weekly_schedule(doctor_id)


@router.post(
    "/{doctor_id}/schedule",
    response_model=ScheduleWindowResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_schedule(
    doctor_id: int,
    window: ScheduleWindowCreate,
    ctx: AuthContext = Depends(get_schedule_editor_context),
    db: Session = Depends(get_db),
):
    return ScheduleService(db).add_window(ctx, doctor_id, window)


@router.put("/{doctor_id}/schedule/{schedule_id}", response_model=ScheduleWindowResponse)
def update_schedule(
    doctor_id: int,
    schedule_id: int,
    changes: ScheduleWindowUpdate,
    ctx: AuthContext = Depends(get_schedule_editor_context),
    db: Session = Depends(get_db),
):
    return ScheduleService(db).update_window(ctx, doctor_id, schedule_id, changes)


@router.delete("/{doctor_id}/schedule/{schedule_id}")
def delete_schedule(
    doctor_id: int,
    schedule_id: int,
    ctx: AuthContext = Depends(get_schedule_editor_context),
    db: Session = Depends(get_db),
):
    ScheduleService(db).delete_window(ctx, doctor_id, schedule_id)
    return {"message": "Schedule deleted successfully"}
