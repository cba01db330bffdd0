"""Write operations for the weekly schedule.

Every public function commits exactly once, so a call either lands
completely or not at all.
"""

import logging
from collections.abc import Iterable
from datetime import time

from sqlalchemy.orm import Session

from practice_availability.core.errors import ConflictError, ValidationError
from practice_availability.database import commit
from practice_availability.models.availability import DAY_NAMES, AppointmentModality, WeeklyAvailabilitySlot
from practice_availability.services import schedule_store
from practice_availability.services.availability_resolver import parse_modality
from practice_availability.services.schedule_store import SlotSpec

logger = logging.getLogger(__name__)

DEFAULT_DAYS = (1, 2, 3, 4, 5)
DEFAULT_START_TIME = time(9, 0)
DEFAULT_END_TIME = time(17, 0)


def validate_day(day: int, field: str = 'days') -> int:
    if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
        raise ValidationError('Day of week must be between 0 (Sunday) and 6 (Saturday).', field=field)
    return day


def validate_time_range(start_time: time, end_time: time) -> None:
    if end_time <= start_time:
        raise ValidationError('End time must be after start time', field='end_time')


def bulk_set(
    db: Session,
    practice_id: str,
    practitioner_id: str,
    days: Iterable[int],
    modality,
    start_time: time,
    end_time: time,
) -> list[WeeklyAvailabilitySlot]:
    """Apply one time range to every day in ``days`` for a single modality."""
    selected_days = sorted({validate_day(day) for day in days})
    if not selected_days:
        raise ValidationError('At least one day must be selected', field='days')
    modality = parse_modality(modality)
    validate_time_range(start_time, end_time)

    specs = [SlotSpec(day, modality, start_time, end_time) for day in selected_days]
    slots = schedule_store.upsert_slots(db, practice_id, practitioner_id, specs)
    commit(db, 'bulk set weekly availability')

    logger.info(
        'Set %s %s-%s on days %s for practitioner %s',
        modality.value,
        start_time,
        end_time,
        selected_days,
        practitioner_id,
    )
    return slots


def reset_to_defaults(db: Session, practice_id: str, practitioner_id: str) -> list[WeeklyAvailabilitySlot]:
    """Replace the whole schedule with Monday-Friday 09:00-17:00 for both modalities."""
    specs = [
        SlotSpec(day, modality, DEFAULT_START_TIME, DEFAULT_END_TIME)
        for day in DEFAULT_DAYS
        for modality in AppointmentModality
    ]

    schedule_store.delete_all_for_practitioner(db, practitioner_id)
    slots = schedule_store.upsert_slots(db, practice_id, practitioner_id, specs)
    commit(db, 'reset weekly availability')

    logger.info('Reset weekly availability to defaults for practitioner %s', practitioner_id)
    return slots


def create_slot(
    db: Session,
    practice_id: str,
    practitioner_id: str,
    day_of_week: int,
    modality,
    start_time: time,
    end_time: time,
    is_active: bool = True,
) -> WeeklyAvailabilitySlot:
    validate_day(day_of_week, field='day_of_week')
    modality = parse_modality(modality)
    validate_time_range(start_time, end_time)

    if schedule_store.find_slot(db, practitioner_id, day_of_week, modality) is not None:
        raise ConflictError(
            f'{DAY_NAMES[day_of_week]} already has {modality.value} availability.',
            field='day_of_week',
        )

    slot = WeeklyAvailabilitySlot(
        practice_id=practice_id,
        practitioner_id=practitioner_id,
        day_of_week=day_of_week,
        modality=modality,
        start_time=start_time,
        end_time=end_time,
        is_active=is_active,
    )
    db.add(slot)
    commit(db, 'create availability slot')
    db.refresh(slot)
    return slot


def update_slot(
    db: Session,
    slot_id: str,
    start_time: time | None = None,
    end_time: time | None = None,
    is_active: bool | None = None,
) -> WeeklyAvailabilitySlot:
    slot = schedule_store.get_slot(db, slot_id)

    validate_time_range(
        start_time if start_time is not None else slot.start_time,
        end_time if end_time is not None else slot.end_time,
    )

    if start_time is not None:
        slot.start_time = start_time
    if end_time is not None:
        slot.end_time = end_time
    if is_active is not None:
        slot.is_active = is_active

    commit(db, 'update availability slot')
    db.refresh(slot)
    return slot


def delete_slot(db: Session, slot_id: str) -> None:
    slot = schedule_store.get_slot(db, slot_id)
    db.delete(slot)
    commit(db, 'delete availability slot')
    logger.info('Deleted availability slot %s', slot_id)


def group_by_day(slots: list[WeeklyAvailabilitySlot]) -> list[dict]:
    grouped: dict[int, dict] = {}
    for slot in slots:
        day = grouped.setdefault(
            slot.day_of_week,
            {'day_of_week': slot.day_of_week, 'day_name': slot.day_name, 'slots': []},
        )
        day['slots'].append(
            {
                'id': slot.id,
                'modality': slot.modality,
                'start_time': slot.start_time,
                'end_time': slot.end_time,
                'is_active': slot.is_active,
            }
        )
    return [grouped[day] for day in sorted(grouped)]

