from sqlalchemy import Column, Integer, ForeignKey, Time, Boolean, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..services.slots import DAYS_OF_WEEK

class ScheduleWindow(Base):
    """A doctor's recurring availability interval for one weekday."""
    __tablename__ = "doctor_schedules"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_doctor_schedules_time_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(SQLEnum(*DAYS_OF_WEEK, name="day_of_week"), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    doctor = relationship("Doctor", back_populates="schedules")

    def __repr__(self):
        return (
            f"<ScheduleWindow(id={self.id}, doctor_id={self.doctor_id}, "
            f"day='{self.day_of_week}', {self.start_time}-{self.end_time})>"
        )
