"""Practice model definitions."""

import uuid

from sqlalchemy import Column, String
from sqlalchemy.orm import validates

from practice_availability.core.timezones import validate_zone_name
from practice_availability.database import Base, UTCDateTime, utc_now


class Practice(Base):
    """Tenant a practitioner belongs to. Its timezone anchors weekly schedules."""
    __tablename__ = "practices"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    timezone = Column(String, nullable=True)  # IANA name, e.g. America/New_York
    created_at = Column(UTCDateTime, default=utc_now)

    @validates("timezone")
    def _check_timezone(self, key, value):
        if value is None:
            return None
        return validate_zone_name(value)
