from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api.deps import get_patient_context
from ...core.database import get_db
from ...core.security import AuthContext
from ...schemas.profile import PatientResponse
from ...services.profile_service import get_patient_by_user_id

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("/me", response_model=PatientResponse)
def get_my_profile(
    ctx: AuthContext = Depends(get_patient_context),
    db: Session = Depends(get_db),
):
    return get_patient_by_user_id(db, ctx.user_id)
