"""Decides whether a practitioner can take an appointment in a given window.

Exceptions are consulted before the weekly schedule:

1. Active exceptions that fully contain the requested window are collected.
   If any of them blocks the requested modality, the most restrictive one
   (``off`` before the modality-only statuses, then the most recently
   created) supplies the answer and its reason.
2. Otherwise the weekly slot for the start's weekday and the requested
   modality must be active and cover the window's wall-clock times in the
   practice timezone.
3. When the weekly schedule rejects the window, exceptions that merely
   overlap it are searched for a more helpful reason before falling back to
   "Outside of regular working hours".

Windows that run past midnight are judged on the start day only; the HTTP
layer refuses them before they get here. Empty or reversed windows are not
rejected here: no slot covers them, so they come back unavailable.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from practice_availability.core.errors import ValidationError
from practice_availability.core.timezones import to_utc, wall_clock
from practice_availability.models.availability import AppointmentModality, WeeklyAvailabilitySlot
from practice_availability.models.availability_exception import AvailabilityException
from practice_availability.services import exception_store, schedule_store
from practice_availability.services.practitioners import get_practice_zone, get_practitioner

logger = logging.getLogger(__name__)

OUTSIDE_WORKING_HOURS = 'Outside of regular working hours'

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class AvailabilityCheckResult:
    available: bool
    reason: str | None = None

    def to_dict(self) -> dict:
        return {'available': self.available, 'reason': self.reason}


AVAILABLE = AvailabilityCheckResult(available=True)


def parse_modality(value) -> AppointmentModality:
    if isinstance(value, AppointmentModality):
        return value
    try:
        return AppointmentModality(value)
    except ValueError as exc:
        allowed = ', '.join(modality.value for modality in AppointmentModality)
        raise ValidationError(f'Modality must be one of: {allowed}.', field='modality') from exc


def select_blocking_exception(
    exceptions: list[AvailabilityException],
    modality: AppointmentModality,
) -> AvailabilityException | None:
    """Pick the exception that decides a fully-contained window, if any blocks it."""
    blocking = [exception for exception in exceptions if exception.status.blocks(modality)]
    if not blocking:
        return None
    return max(
        blocking,
        key=lambda exception: (exception.status.restrictiveness, exception.created_at or _EPOCH, exception.id),
    )


def select_diagnostic_exception(
    exceptions: list[AvailabilityException],
    modality: AppointmentModality,
) -> AvailabilityException | None:
    blocking = [exception for exception in exceptions if exception.status.blocks(modality)]
    if not blocking:
        return None
    return min(
        blocking,
        key=lambda exception: (-exception.status.restrictiveness, exception.start_at, exception.id),
    )


def slot_covers(slot: WeeklyAvailabilitySlot | None, start_time, end_time) -> bool:
    return slot is not None and slot.covers(start_time, end_time)


def check_availability(
    db: Session,
    practitioner_id: str,
    modality,
    start: datetime,
    end: datetime,
) -> AvailabilityCheckResult:
    modality = parse_modality(modality)
    practitioner = get_practitioner(db, practitioner_id)
    zone = get_practice_zone(db, practitioner.practice_id)

    start_utc = to_utc(start, zone)
    end_utc = to_utc(end, zone)

    containing = exception_store.find_containing(db, practitioner_id, start_utc, end_utc)
    deciding = select_blocking_exception(containing, modality)
    if deciding is not None:
        logger.debug(
            'Exception %s (%s) blocks %s for practitioner %s',
            deciding.id,
            deciding.status.value,
            modality.value,
            practitioner_id,
        )
        return AvailabilityCheckResult(available=False, reason=deciding.reason_for(modality))

    day, start_time = wall_clock(start_utc, zone)
    _, end_time = wall_clock(end_utc, zone)
    slot = schedule_store.find_slot(db, practitioner_id, day, modality)

    if slot_covers(slot, start_time, end_time):
        return AVAILABLE

    overlapping = exception_store.find_overlapping(db, practitioner_id, start_utc, end_utc)
    diagnostic = select_diagnostic_exception(overlapping, modality)
    reason = diagnostic.reason_for(modality) if diagnostic else OUTSIDE_WORKING_HOURS

    logger.debug(
        'Practitioner %s unavailable for %s on day %s %s-%s: %s',
        practitioner_id,
        modality.value,
        day,
        start_time,
        end_time,
        reason,
    )
    return AvailabilityCheckResult(available=False, reason=reason)
