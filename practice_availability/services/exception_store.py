"""Reads for time-bounded schedule exceptions.

Bounds are passed in UTC. Both window queries use inclusive bounds.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from practice_availability.core.errors import NotFoundError
from practice_availability.database import storage_errors
from practice_availability.models.availability_exception import AvailabilityException


def list_for_practitioner(db: Session, practitioner_id: str, active_only: bool = True) -> list[AvailabilityException]:
    with storage_errors(db, 'list availability exceptions'):
        query = db.query(AvailabilityException).filter(AvailabilityException.practitioner_id == practitioner_id)
        if active_only:
            query = query.filter(AvailabilityException.is_active.is_(True))
        return query.order_by(AvailabilityException.start_at.asc()).all()


def get_exception(db: Session, exception_id: str) -> AvailabilityException:
    with storage_errors(db, 'load availability exception'):
        exception = db.query(AvailabilityException).filter(AvailabilityException.id == exception_id).first()

    if exception is None:
        raise NotFoundError('Availability exception not found.', field='id')
    return exception


def find_containing(db: Session, practitioner_id: str, start: datetime, end: datetime) -> list[AvailabilityException]:
    """Active exceptions whose span covers the whole of [start, end]."""
    with storage_errors(db, 'look up containing exceptions'):
        return db.query(AvailabilityException).filter(
            AvailabilityException.practitioner_id == practitioner_id,
            AvailabilityException.is_active.is_(True),
            AvailabilityException.start_at <= start,
            AvailabilityException.end_at >= end,
        ).all()


def find_overlapping(db: Session, practitioner_id: str, start: datetime, end: datetime) -> list[AvailabilityException]:
    """Active exceptions touching [start, end] at all."""
    with storage_errors(db, 'look up overlapping exceptions'):
        return db.query(AvailabilityException).filter(
            AvailabilityException.practitioner_id == practitioner_id,
            AvailabilityException.is_active.is_(True),
            AvailabilityException.start_at <= end,
            AvailabilityException.end_at >= start,
        ).order_by(AvailabilityException.start_at.asc()).all()
