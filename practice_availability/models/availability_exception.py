"""Availability exception model definitions."""

import enum
import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, Enum, ForeignKey, String

from practice_availability.database import Base, UTCDateTime, utc_now
from practice_availability.models.availability import AppointmentModality, enum_values


class AvailabilityStatus(str, enum.Enum):
    """Effect of an exception on the weekly schedule while it is in force."""

    OFF = 'off'
    ONLINE_ONLY = 'online_only'
    IN_PERSON_ONLY = 'in_person_only'

    def blocks(self, modality: AppointmentModality) -> bool:
        if self is AvailabilityStatus.OFF:
            return True
        if self is AvailabilityStatus.ONLINE_ONLY:
            return modality is not AppointmentModality.ONLINE
        return modality is not AppointmentModality.IN_PERSON

    @property
    def default_reason(self) -> str:
        return _DEFAULT_REASONS[self]

    @property
    def restrictiveness(self) -> int:
        # Higher wins when several exceptions apply to the same window.
        return 2 if self is AvailabilityStatus.OFF else 1


_DEFAULT_REASONS = {
    AvailabilityStatus.OFF: 'Practitioner is unavailable during this period',
    AvailabilityStatus.ONLINE_ONLY: 'Only online appointments available during this period',
    AvailabilityStatus.IN_PERSON_ONLY: 'Only in-person appointments available during this period',
}

MAX_DESCRIPTION_LENGTH = 500


class AvailabilityException(Base):
    """Time-bounded override of a practitioner's weekly schedule.

    Overlapping exceptions are allowed. ``is_active`` is never flipped by the
    passage of time; an exception whose end is in the past stays active until
    someone deactivates it.
    """
    __tablename__ = 'availability_exceptions'
    __table_args__ = (
        CheckConstraint('end_at > start_at', name='ck_exception_time_order'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    practice_id = Column(String(36), ForeignKey('practices.id'), nullable=False)
    practitioner_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    status = Column(
        Enum(
            AvailabilityStatus,
            name='availability_status',
            native_enum=False,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    start_at = Column(UTCDateTime, nullable=False)
    end_at = Column(UTCDateTime, nullable=False)
    description = Column(String(MAX_DESCRIPTION_LENGTH), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now)

    def reason_for(self, modality: AppointmentModality) -> str | None:
        """Rejection reason for ``modality``, or None when this exception lets it through."""
        if not self.status.blocks(modality):
            return None
        return self.description or self.status.default_reason

    def __repr__(self) -> str:
        return (
            f'<AvailabilityException(id={self.id}, practitioner_id={self.practitioner_id}, '
            f'status={self.status.value}, {self.start_at}-{self.end_at})>'
        )
