from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundError, ValidationError
from ..core.security import AuthContext, AuthorizationError
from ..models.doctor import Doctor
from ..models.schedule import ScheduleWindow
from ..schemas.schedule import ScheduleWindowCreate, ScheduleWindowUpdate
from .availability_service import get_doctor_or_404
from .slots import format_hhmm, sort_weekly_schedule, windows_overlap

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(self, db: Session):
        self.db = db

    def get_weekly_schedule(self, doctor_id: int) -> List[ScheduleWindow]:
        """All windows for a doctor, Monday first."""
        get_doctor_or_404(self.db, doctor_id)
        windows = self.db.query(ScheduleWindow).filter(ScheduleWindow.doctor_id == doctor_id).all()
        return sort_weekly_schedule(windows)

    def add_window(self, ctx: AuthContext, doctor_id: int, data: ScheduleWindowCreate) -> ScheduleWindow:
        doctor = self._get_managed_doctor(ctx, doctor_id)
        self._validate_window(doctor.id, data.day_of_week, data.start_time, data.end_time, data.is_available)

        window = ScheduleWindow(doctor_id=doctor.id, **data.model_dump())
        self.db.add(window)
        self.db.commit()
        self.db.refresh(window)
        logger.info(
            f"Doctor {doctor.id} added {window.day_of_week} window "
            f"{format_hhmm(window.start_time)}-{format_hhmm(window.end_time)}"
        )
        return window

    def update_window(
        self,
        ctx: AuthContext,
        doctor_id: int,
        schedule_id: int,
        changes: ScheduleWindowUpdate,
    ) -> ScheduleWindow:
        """
        Partial update: only fields present in the request are changed.

        The merged window is re-validated against the doctor's other windows.
        """
        doctor = self._get_managed_doctor(ctx, doctor_id)
        window = self._get_window_or_404(doctor.id, schedule_id)

        updates = changes.model_dump(exclude_unset=True)
        merged = {
            "day_of_week": window.day_of_week,
            "start_time": window.start_time,
            "end_time": window.end_time,
            "is_available": window.is_available,
        }
        merged.update(updates)
        self._validate_window(doctor.id, exclude_id=window.id, **merged)

        for field, value in updates.items():
            setattr(window, field, value)
        self.db.commit()
        self.db.refresh(window)
        logger.info(f"Doctor {doctor.id} updated schedule window {window.id}")
        return window

    def delete_window(self, ctx: AuthContext, doctor_id: int, schedule_id: int) -> None:
        doctor = self._get_managed_doctor(ctx, doctor_id)
        window = self._get_window_or_404(doctor.id, schedule_id)
        self.db.delete(window)
        self.db.commit()
        logger.info(f"Doctor {doctor.id} deleted schedule window {schedule_id}")

    def _validate_window(
        self,
        doctor_id: int,
        day_of_week: str,
        start_time,
        end_time,
        is_available: bool,
        exclude_id: Optional[int] = None,
    ) -> None:
        if start_time >= end_time:
            raise ValidationError("Start time must be before end time")
        if not is_available:
            return

        query = self.db.query(ScheduleWindow).filter(
            ScheduleWindow.doctor_id == doctor_id,
            ScheduleWindow.day_of_week == day_of_week,
            ScheduleWindow.is_available.is_(True),
        )
        if exclude_id is not None:
            query = query.filter(ScheduleWindow.id != exclude_id)

        for other in query.all():
            if windows_overlap(start_time, end_time, other.start_time, other.end_time):
                raise ValidationError(
                    f"Schedule overlaps existing {day_of_week} window "
                    f"{format_hhmm(other.start_time)}-{format_hhmm(other.end_time)}"
                )

    def _get_managed_doctor(self, ctx: AuthContext, doctor_id: int) -> Doctor:
        """The doctor whose schedule the caller may edit: their own, or any for admins."""
        doctor = get_doctor_or_404(self.db, doctor_id)
        if not ctx.is_admin and doctor.user_id != ctx.user_id:
            raise AuthorizationError("You can only manage your own schedule")
        return doctor

    def _get_window_or_404(self, doctor_id: int, schedule_id: int) -> ScheduleWindow:
        window = self.db.query(ScheduleWindow).filter(
            ScheduleWindow.id == schedule_id,
            ScheduleWindow.doctor_id == doctor_id,
        ).first()
        if not window:
            raise NotFoundError("Schedule not found")
        return window
