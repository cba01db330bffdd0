"""Create, change and remove availability exceptions.

Overlap between exceptions is not checked; the resolver decides which one
applies to a given window.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from practice_availability.core.errors import ValidationError
from practice_availability.core.timezones import to_utc
from practice_availability.database import commit
from practice_availability.models.availability_exception import (
    MAX_DESCRIPTION_LENGTH,
    AvailabilityException,
    AvailabilityStatus,
)
from practice_availability.services import exception_store
from practice_availability.services.practitioners import get_practice_zone, get_practitioner

logger = logging.getLogger(__name__)

# Sentinel for "leave unchanged" in partial updates, distinct from None.
UNSET = object()


def parse_status(value) -> AvailabilityStatus:
    if isinstance(value, AvailabilityStatus):
        return value
    try:
        return AvailabilityStatus(value)
    except ValueError as exc:
        allowed = ', '.join(status.value for status in AvailabilityStatus)
        raise ValidationError(f'Status must be one of: {allowed}.', field='status') from exc


def normalize_description(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    if len(normalized) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f'Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer.',
            field='description',
        )
    return normalized


def validate_window(start: datetime, end: datetime) -> None:
    if end <= start:
        raise ValidationError('End datetime must be after start datetime', field='end_at')


def create_exception(
    db: Session,
    practice_id: str,
    practitioner_id: str,
    status,
    start: datetime,
    end: datetime,
    description: str | None = None,
) -> AvailabilityException:
    status = parse_status(status)
    zone = get_practice_zone(db, practice_id)
    start_utc = to_utc(start, zone)
    end_utc = to_utc(end, zone)
    validate_window(start_utc, end_utc)

    exception = AvailabilityException(
        practice_id=practice_id,
        practitioner_id=practitioner_id,
        status=status,
        start_at=start_utc,
        end_at=end_utc,
        description=normalize_description(description),
        is_active=True,
    )
    db.add(exception)
    commit(db, 'create availability exception')
    db.refresh(exception)

    logger.info(
        'Created %s exception %s for practitioner %s (%s to %s)',
        status.value,
        exception.id,
        practitioner_id,
        start_utc.isoformat(),
        end_utc.isoformat(),
    )
    return exception


def update_exception(
    db: Session,
    exception_id: str,
    status=UNSET,
    start=UNSET,
    end=UNSET,
    description=UNSET,
    is_active=UNSET,
) -> AvailabilityException:
    exception = exception_store.get_exception(db, exception_id)
    zone = get_practice_zone(db, exception.practice_id)

    new_start = exception.start_at if start is UNSET or start is None else to_utc(start, zone)
    new_end = exception.end_at if end is UNSET or end is None else to_utc(end, zone)
    validate_window(new_start, new_end)

    if status is not UNSET and status is not None:
        exception.status = parse_status(status)
    exception.start_at = new_start
    exception.end_at = new_end
    if description is not UNSET:
        exception.description = normalize_description(description)
    if is_active is not UNSET and is_active is not None:
        exception.is_active = bool(is_active)

    commit(db, 'update availability exception')
    db.refresh(exception)
    return exception


def delete_exception(db: Session, exception_id: str) -> None:
    exception = exception_store.get_exception(db, exception_id)
    db.delete(exception)
    commit(db, 'delete availability exception')
    logger.info('Deleted availability exception %s', exception_id)


def get_exception(db: Session, exception_id: str) -> AvailabilityException:
    return exception_store.get_exception(db, exception_id)


def list_by_practitioner(db: Session, practitioner_id: str, active_only: bool = True) -> list[AvailabilityException]:
    return exception_store.list_for_practitioner(db, practitioner_id, active_only=active_only)


def list_overlapping(
    db: Session,
    practitioner_id: str,
    start: datetime,
    end: datetime,
) -> list[AvailabilityException]:
    practitioner = get_practitioner(db, practitioner_id)
    zone = get_practice_zone(db, practitioner.practice_id)
    return exception_store.find_overlapping(db, practitioner_id, to_utc(start, zone), to_utc(end, zone))
