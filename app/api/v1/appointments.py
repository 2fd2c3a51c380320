from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...api.deps import get_auth_context, get_notifier, get_patient_context
from ...core.database import get_db
from ...core.exceptions import DoctorUnavailableError
from ...core.security import AuthContext
from ...schemas.appointment import AppointmentResponse, AvailabilityResponse, BookingRequest
from ...services.availability_service import resolve_availability
from ...services.booking_service import BookingService
from ...services.notifications import NotificationDispatcher

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _unavailable_payload(message: str, day_of_week: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": message,
            "availableSlots": [],
            "bookedSlots": [],
            "dayOfWeek": day_of_week,
        },
    )


@router.post("/book", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    booking: BookingRequest,
    ctx: AuthContext = Depends(get_patient_context),
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Book a slot with a doctor for the calling patient."""
    return BookingService(db, notifier).book_appointment(ctx, booking)


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    doctor_id: Optional[int] = Query(default=None, alias="doctorId"),
    appointment_date: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
):
    """Open and booked slots for a doctor on one date."""
    if doctor_id is None or appointment_date is None:
        return _unavailable_payload("doctorId and date are required")

    try:
        return resolve_availability(db, doctor_id, appointment_date)
    except DoctorUnavailableError as exc:
        return _unavailable_payload(exc.detail, exc.day_of_week)


@router.get("/me", response_model=List[AppointmentResponse])
def list_my_appointments(
    ctx: AuthContext = Depends(get_patient_context),
    db: Session = Depends(get_db),
):
    """Appointments of the calling patient, newest first."""
    return BookingService(db).list_patient_appointments(ctx)


@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """Cancel a scheduled appointment; the slot becomes bookable again."""
    return BookingService(db).cancel_appointment(ctx, appointment_id)
