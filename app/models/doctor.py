from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Text
from sqlalchemy.orm import relationship

from ..core.database import Base

DEFAULT_SPECIALIZATION = "General Practice"

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Professional information
    specialization = Column(String(100), nullable=False, default=DEFAULT_SPECIALIZATION)
    bio = Column(Text, nullable=True)
    consultation_fee = Column(Numeric(10, 2), nullable=False, default=0)
    room_number = Column(String(20), nullable=True)

    # Relationships
    user = relationship("User", back_populates="doctor")
    schedules = relationship("ScheduleWindow", back_populates="doctor", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="doctor")

    @property
    def full_name(self):
        return self.user.full_name if self.user else None

    @property
    def email(self):
        return self.user.email if self.user else None

    def __repr__(self):
        return f"<Doctor(id={self.id}, user_id={self.user_id}, specialization='{self.specialization}')>"
