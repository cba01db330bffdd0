"""Reads and writes for the recurring weekly schedule.

Nothing here commits. Callers own the transaction so that multi-row writes
land as one unit.
"""

import logging
from dataclasses import dataclass
from datetime import time

from sqlalchemy.orm import Session

from practice_availability.core.errors import NotFoundError
from practice_availability.database import storage_errors
from practice_availability.models.availability import AppointmentModality, WeeklyAvailabilitySlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotSpec:
    day_of_week: int
    modality: AppointmentModality
    start_time: time
    end_time: time
    is_active: bool = True


def list_slots(db: Session, practitioner_id: str, active_only: bool = True) -> list[WeeklyAvailabilitySlot]:
    with storage_errors(db, 'list weekly availability'):
        query = db.query(WeeklyAvailabilitySlot).filter(WeeklyAvailabilitySlot.practitioner_id == practitioner_id)
        if active_only:
            query = query.filter(WeeklyAvailabilitySlot.is_active.is_(True))
        return query.order_by(
            WeeklyAvailabilitySlot.day_of_week.asc(),
            WeeklyAvailabilitySlot.modality.asc(),
        ).all()


def get_slot(db: Session, slot_id: str) -> WeeklyAvailabilitySlot:
    with storage_errors(db, 'load availability slot'):
        slot = db.query(WeeklyAvailabilitySlot).filter(WeeklyAvailabilitySlot.id == slot_id).first()

    if slot is None:
        raise NotFoundError('Availability slot not found.', field='id')
    return slot


def find_slot(
    db: Session,
    practitioner_id: str,
    day_of_week: int,
    modality: AppointmentModality,
) -> WeeklyAvailabilitySlot | None:
    with storage_errors(db, 'look up availability slot'):
        return db.query(WeeklyAvailabilitySlot).filter(
            WeeklyAvailabilitySlot.practitioner_id == practitioner_id,
            WeeklyAvailabilitySlot.day_of_week == day_of_week,
            WeeklyAvailabilitySlot.modality == modality,
        ).first()


def upsert_slots(
    db: Session,
    practice_id: str,
    practitioner_id: str,
    specs: list[SlotSpec],
) -> list[WeeklyAvailabilitySlot]:
    """Insert or replace one slot per (day, modality) key. Flushes, never commits."""
    if not specs:
        return []

    with storage_errors(db, 'upsert weekly availability'):
        existing = db.query(WeeklyAvailabilitySlot).filter(
            WeeklyAvailabilitySlot.practitioner_id == practitioner_id,
            WeeklyAvailabilitySlot.day_of_week.in_(sorted({spec.day_of_week for spec in specs})),
        ).all()
        by_key = {(slot.day_of_week, slot.modality): slot for slot in existing}

        upserted: list[WeeklyAvailabilitySlot] = []
        for spec in specs:
            slot = by_key.get((spec.day_of_week, spec.modality))
            if slot is None:
                slot = WeeklyAvailabilitySlot(
                    practice_id=practice_id,
                    practitioner_id=practitioner_id,
                    day_of_week=spec.day_of_week,
                    modality=spec.modality,
                )
                db.add(slot)
                by_key[(spec.day_of_week, spec.modality)] = slot

            slot.start_time = spec.start_time
            slot.end_time = spec.end_time
            slot.is_active = spec.is_active
            upserted.append(slot)

        db.flush()

    return upserted


def delete_all_for_practitioner(db: Session, practitioner_id: str) -> int:
    with storage_errors(db, 'clear weekly availability'):
        deleted = db.query(WeeklyAvailabilitySlot).filter(
            WeeklyAvailabilitySlot.practitioner_id == practitioner_id,
        ).delete(synchronize_session='fetch')
        db.flush()

    logger.debug('Removed %s weekly slots for practitioner %s', deleted, practitioner_id)
    return deleted
