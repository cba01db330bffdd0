from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from practice_availability.auth.dependencies import get_current_user
from practice_availability.auth.permissions import assigned_practitioner_ids
from practice_availability.database import get_db
from practice_availability.models.user import User

router = APIRouter(tags=["auth"])


class MeResponse(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    role: str
    practice_id: str | None = None
    assigned_practitioner_ids: list[str] = []


@router.get("/me", response_model=MeResponse)
def me(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    assigned = assigned_practitioner_ids(db, current_user.id) if current_user.is_assistant else []
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role,
        practice_id=current_user.practice_id,
        assigned_practitioner_ids=assigned,
    )
