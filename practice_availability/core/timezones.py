"""Conversion between absolute instants and a practice's wall clock.

Weekly slots are wall-clock times with no date; exceptions and requests are
absolute instants. Every conversion between the two goes through the
practice's timezone (falling back to ``DEFAULT_TIMEZONE``).
"""

import logging
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from practice_availability.core import config
from practice_availability.core.errors import ValidationError

logger = logging.getLogger(__name__)


def get_zone(name: str | None) -> ZoneInfo:
    zone_name = name or config.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f'Unknown timezone: {zone_name}', field='timezone') from exc


def validate_zone_name(name: str) -> str:
    get_zone(name)
    return name


def to_utc(value: datetime, zone: ZoneInfo) -> datetime:
    """Naive values are read as wall-clock time in ``zone``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone)
    return value.astimezone(timezone.utc)


def to_local(value: datetime, zone: ZoneInfo) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone)
    return value.astimezone(zone)


def day_of_week(value: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (value.weekday() + 1) % 7


def wall_clock(value: datetime, zone: ZoneInfo) -> tuple[int, time]:
    local = to_local(value, zone)
    return day_of_week(local.date()), local.time().replace(tzinfo=None)


def spans_midnight(start: datetime, end: datetime, zone: ZoneInfo) -> bool:
    return to_local(start, zone).date() != to_local(end, zone).date()
