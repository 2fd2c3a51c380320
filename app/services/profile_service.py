from typing import List
import logging

from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import NotFoundError
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..schemas.profile import DoctorProfileUpdate

logger = logging.getLogger(__name__)


def list_doctors(db: Session) -> List[Doctor]:
    return db.query(Doctor).options(joinedload(Doctor.user)).order_by(Doctor.id.asc()).all()


def get_doctor_by_user_id(db: Session, user_id: int) -> Doctor:
    doctor = db.query(Doctor).filter(Doctor.user_id == user_id).first()
    if not doctor:
        raise NotFoundError("Doctor profile not found")
    return doctor


def get_patient_by_user_id(db: Session, user_id: int) -> Patient:
    patient = db.query(Patient).filter(Patient.user_id == user_id).first()
    if not patient:
        raise NotFoundError("Patient profile not found for this user")
    return patient


def update_doctor_profile(db: Session, user_id: int, changes: DoctorProfileUpdate) -> Doctor:
    """
    Apply only the fields present in the request.

    A field that was sent is applied even when falsy, so a fee of 0 or an
    empty bio are legitimate updates.
    """
    doctor = get_doctor_by_user_id(db, user_id)
    for field, value in changes.model_dump(exclude_unset=True).items():
        setattr(doctor, field, value)

    db.commit()
    db.refresh(doctor)
    logger.info(f"Updated profile for doctor {doctor.id}")
    return doctor
