"""Weekly availability model definitions."""

import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)

from practice_availability.database import Base, UTCDateTime, utc_now

# 0 = Sunday ... 6 = Saturday
DAY_NAMES = {
    0: 'Sunday',
    1: 'Monday',
    2: 'Tuesday',
    3: 'Wednesday',
    4: 'Thursday',
    5: 'Friday',
    6: 'Saturday',
}


class AppointmentModality(str, enum.Enum):
    """How an appointment is delivered."""

    IN_PERSON = 'in_person'
    ONLINE = 'online'


def enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class WeeklyAvailabilitySlot(Base):
    """Recurring working hours for one weekday and one modality."""
    __tablename__ = 'practitioner_availability'
    __table_args__ = (
        UniqueConstraint('practitioner_id', 'day_of_week', 'modality', name='uq_practitioner_day_modality'),
        CheckConstraint('end_time > start_time', name='ck_availability_time_order'),
        CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_availability_day_of_week'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    practice_id = Column(String(36), ForeignKey('practices.id'), nullable=False)
    practitioner_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    modality = Column(
        Enum(
            AppointmentModality,
            name='appointment_modality',
            native_enum=False,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now)

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]

    def covers(self, start_time, end_time) -> bool:
        if start_time >= end_time:
            return False
        return bool(self.is_active) and self.start_time <= start_time and self.end_time >= end_time

    def __repr__(self) -> str:
        return (
            f'<WeeklyAvailabilitySlot(practitioner_id={self.practitioner_id}, day={self.day_name}, '
            f'modality={self.modality.value}, {self.start_time}-{self.end_time})>'
        )
