from datetime import datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from practice_availability.auth.dependencies import get_current_user
from practice_availability.auth.permissions import (
    practitioner_for_manage,
    practitioner_for_read,
    require_manage_access,
)
from practice_availability.core.errors import NotFoundError, StorageError, ValidationError
from practice_availability.core.timezones import spans_midnight
from practice_availability.database import ensure_availability_schema, get_db
from practice_availability.models.availability import AppointmentModality, WeeklyAvailabilitySlot
from practice_availability.models.availability_exception import AvailabilityStatus
from practice_availability.models.user import User
from practice_availability.services import availability_resolver, exception_store, schedule_editor, schedule_store
from practice_availability.services.practitioners import get_practice_zone, get_practitioner


def check_request_window(start_at: datetime, end_at: datetime) -> None:
    if (start_at.tzinfo is None) != (end_at.tzinfo is None):
        raise ValueError('start_at and end_at must both carry a UTC offset or both omit it')
    if end_at <= start_at:
        raise ValueError('End datetime must be after start datetime')


def ensure_database_ready() -> None:
    try:
        ensure_availability_schema()
    except SQLAlchemyError as exc:
        raise StorageError() from exc


router = APIRouter(tags=['availability'], dependencies=[Depends(ensure_database_ready)])


class CheckAvailabilityRequest(BaseModel):
    practitioner_id: str | None = None
    modality: AppointmentModality
    start_at: datetime
    end_at: datetime

    @model_validator(mode='after')
    def validate_window(self) -> 'CheckAvailabilityRequest':
        check_request_window(self.start_at, self.end_at)
        return self


class AvailabilityCheckResponse(BaseModel):
    available: bool
    reason: str | None = None


class SlotResponse(BaseModel):
    id: str
    practice_id: str
    practitioner_id: str
    day_of_week: int
    day_name: str
    modality: AppointmentModality
    start_time: time
    end_time: time
    is_active: bool

    class Config:
        from_attributes = True


class CreateSlotRequest(BaseModel):
    practitioner_id: str | None = None
    day_of_week: int
    modality: AppointmentModality
    start_time: time
    end_time: time
    is_active: bool = True


class BulkSetRequest(BaseModel):
    practitioner_id: str | None = None
    days: list[int]
    modality: AppointmentModality
    start_time: time
    end_time: time

    @field_validator('days')
    @classmethod
    def validate_days(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError('At least one day must be selected')
        if len(set(value)) > 7:
            raise ValueError('Cannot select more than 7 days')
        return value


class ResetScheduleRequest(BaseModel):
    practitioner_id: str | None = None


class UpdateSlotRequest(BaseModel):
    start_time: time | None = None
    end_time: time | None = None
    is_active: bool | None = None


class DaySlotResponse(BaseModel):
    id: str
    modality: AppointmentModality
    start_time: time
    end_time: time
    is_active: bool


class DayAvailabilityResponse(BaseModel):
    day_of_week: int
    day_name: str
    slots: list[DaySlotResponse]


class OverviewExceptionResponse(BaseModel):
    id: str
    status: AvailabilityStatus
    start_at: datetime
    end_at: datetime
    description: str | None = None

    class Config:
        from_attributes = True


class AvailabilityOverviewResponse(BaseModel):
    practitioner_id: str
    timezone: str
    regular_schedule: list[DayAvailabilityResponse]
    exceptions: list[OverviewExceptionResponse]


def slot_for_manage(db: Session, current_user: User, slot_id: str) -> WeeklyAvailabilitySlot:
    slot = schedule_store.get_slot(db, slot_id)
    if slot.practice_id != current_user.practice_id:
        raise NotFoundError('Availability slot not found.', field='id')
    require_manage_access(current_user, get_practitioner(db, slot.practitioner_id))
    return slot


@router.post('/check', response_model=AvailabilityCheckResponse)
def check_availability(
    data: CheckAvailabilityRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    practitioner = practitioner_for_read(db, current_user, data.practitioner_id)

    zone = get_practice_zone(db, practitioner.practice_id)
    if spans_midnight(data.start_at, data.end_at, zone):
        raise ValidationError('Appointments must start and end on the same day.', field='end_at')

    result = availability_resolver.check_availability(
        db,
        practitioner.id,
        data.modality,
        data.start_at,
        data.end_at,
    )
    return AvailabilityCheckResponse(**result.to_dict())


@router.get('/schedule', response_model=list[SlotResponse])
def get_schedule(
    practitioner_id: str | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    practitioner = practitioner_for_read(db, current_user, practitioner_id)
    return schedule_store.list_slots(db, practitioner.id, active_only=not include_inactive)


@router.get('/overview', response_model=AvailabilityOverviewResponse)
def get_overview(
    practitioner_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    practitioner = practitioner_for_read(db, current_user, practitioner_id)
    slots = schedule_store.list_slots(db, practitioner.id)
    exceptions = exception_store.list_for_practitioner(db, practitioner.id, active_only=True)

    return AvailabilityOverviewResponse(
        practitioner_id=practitioner.id,
        timezone=get_practice_zone(db, practitioner.practice_id).key,
        regular_schedule=schedule_editor.group_by_day(slots),
        exceptions=exceptions,
    )


@router.post('/schedule', response_model=SlotResponse, status_code=status.HTTP_201_CREATED)
def create_slot(
    data: CreateSlotRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    practitioner = practitioner_for_manage(db, current_user, data.practitioner_id)
    return schedule_editor.create_slot(
        db,
        practitioner.practice_id,
        practitioner.id,
        data.day_of_week,
        data.modality,
        data.start_time,
        data.end_time,
        is_active=data.is_active,
    )


@router.post('/schedule/bulk-set', response_model=list[SlotResponse], status_code=status.HTTP_201_CREATED)
def bulk_set_schedule(
    data: BulkSetRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    practitioner = practitioner_for_manage(db, current_user, data.practitioner_id)
    return schedule_editor.bulk_set(
        db,
        practitioner.practice_id,
        practitioner.id,
        data.days,
        data.modality,
        data.start_time,
        data.end_time,
    )


@router.post('/schedule/reset', response_model=list[SlotResponse])
def reset_schedule(
    data: ResetScheduleRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    practitioner_id = data.practitioner_id if data else None
    practitioner = practitioner_for_manage(db, current_user, practitioner_id)
    return schedule_editor.reset_to_defaults(db, practitioner.practice_id, practitioner.id)


@router.patch('/schedule/{slot_id}', response_model=SlotResponse)
def update_slot(
    slot_id: str,
    data: UpdateSlotRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    slot_for_manage(db, current_user, slot_id)
    return schedule_editor.update_slot(db, slot_id, **data.model_dump(exclude_unset=True))


@router.delete('/schedule/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(
    slot_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    slot_for_manage(db, current_user, slot_id)
    schedule_editor.delete_slot(db, slot_id)
