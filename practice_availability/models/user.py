"""User model definitions."""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, String

from practice_availability.database import Base

ROLE_PRACTITIONER = "practitioner"
ROLE_ASSISTANT = "assistant"
ROLE_ADMIN = "admin"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String)
    role = Column(String, nullable=False, default=ROLE_PRACTITIONER)  # practitioner/assistant/admin
    practice_id = Column(String(36), ForeignKey("practices.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    @property
    def is_practitioner(self) -> bool:
        return self.role == ROLE_PRACTITIONER

    @property
    def is_assistant(self) -> bool:
        return self.role == ROLE_ASSISTANT

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
