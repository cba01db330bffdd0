"""Assistant to practitioner assignments."""

import uuid

from sqlalchemy import Column, ForeignKey, String, UniqueConstraint

from practice_availability.database import Base, UTCDateTime, utc_now


class PractitionerAssignment(Base):
    """Lets an assistant read schedules and check availability for a practitioner."""
    __tablename__ = "practitioner_assignments"
    __table_args__ = (
        UniqueConstraint("assistant_id", "practitioner_id", name="uq_practitioner_assignment"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assistant_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    practitioner_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    practice_id = Column(String(36), ForeignKey("practices.id"), nullable=False)
    created_at = Column(UTCDateTime, default=utc_now)
