from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from practice_availability.auth.dependencies import get_current_user
from practice_availability.auth.permissions import (
    practitioner_for_manage,
    practitioner_for_read,
    require_manage_access,
    require_read_access,
)
from practice_availability.core.errors import NotFoundError, ValidationError
from practice_availability.database import get_db
from practice_availability.models.availability_exception import (
    MAX_DESCRIPTION_LENGTH,
    AvailabilityException,
    AvailabilityStatus,
)
from practice_availability.models.user import User
from practice_availability.routes.availability_routes import check_request_window, ensure_database_ready
from practice_availability.services import exception_editor
from practice_availability.services.practitioners import get_practitioner

router = APIRouter(tags=['availability exceptions'], dependencies=[Depends(ensure_database_ready)])


class ExceptionResponse(BaseModel):
    id: str
    practice_id: str
    practitioner_id: str
    status: AvailabilityStatus
    start_at: datetime
    end_at: datetime
    description: str | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class CreateExceptionRequest(BaseModel):
    practitioner_id: str | None = None
    status: AvailabilityStatus
    start_at: datetime
    end_at: datetime
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)

    @model_validator(mode='after')
    def validate_window(self) -> 'CreateExceptionRequest':
        check_request_window(self.start_at, self.end_at)
        return self


class UpdateExceptionRequest(BaseModel):
    status: AvailabilityStatus | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    is_active: bool | None = None


def exception_in_practice(db: Session, current_user: User, exception_id: str) -> AvailabilityException:
    exception = exception_editor.get_exception(db, exception_id)
    if exception.practice_id != current_user.practice_id:
        raise NotFoundError('Availability exception not found.', field='id')
    return exception


@router.get('', response_model=list[ExceptionResponse])
def list_exceptions(
    practitioner_id: str | None = Query(default=None),
    active_only: bool = Query(default=True),
    start_at: datetime | None = Query(default=None),
    end_at: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    practitioner = practitioner_for_read(db, current_user, practitioner_id)

    if start_at is None and end_at is None:
        return exception_editor.list_by_practitioner(db, practitioner.id, active_only=active_only)

    if start_at is None or end_at is None:
        raise ValidationError('start_at and end_at must be given together.', field='start_at')
    try:
        check_request_window(start_at, end_at)
    except ValueError as exc:
        raise ValidationError(str(exc), field='end_at') from exc
    return exception_editor.list_overlapping(
        db,
        practitioner.id,
        start_at,
        end_at,
    )


@router.get('/{exception_id}', response_model=ExceptionResponse)
def get_exception(
    exception_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exception = exception_in_practice(db, current_user, exception_id)
    require_read_access(db, current_user, get_practitioner(db, exception.practitioner_id))
    return exception


@router.post('', response_model=ExceptionResponse, status_code=status.HTTP_201_CREATED)
def create_exception(
    data: CreateExceptionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    practitioner = practitioner_for_manage(db, current_user, data.practitioner_id)
    return exception_editor.create_exception(
        db,
        practitioner.practice_id,
        practitioner.id,
        data.status,
        data.start_at,
        data.end_at,
        description=data.description,
    )


@router.patch('/{exception_id}', response_model=ExceptionResponse)
def update_exception(
    exception_id: str,
    data: UpdateExceptionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exception = exception_in_practice(db, current_user, exception_id)
    require_manage_access(current_user, get_practitioner(db, exception.practitioner_id))

    changes = data.model_dump(exclude_unset=True)
    if 'start_at' in changes:
        changes['start'] = changes.pop('start_at')
    if 'end_at' in changes:
        changes['end'] = changes.pop('end_at')

    return exception_editor.update_exception(db, exception_id, **changes)


@router.delete('/{exception_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_exception(
    exception_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exception = exception_in_practice(db, current_user, exception_id)
    require_manage_access(current_user, get_practitioner(db, exception.practitioner_id))
    exception_editor.delete_exception(db, exception_id)
