"""Practice scoping and role checks for availability data.

- Practitioners outside the caller's practice are reported as not found.
- Practitioners and admins may read any schedule in their practice;
  assistants only those of practitioners assigned to them.
- Only the practitioner or an admin of the same practice may change a
  schedule or its exceptions.
"""

import logging

from sqlalchemy.orm import Session

from practice_availability.core.errors import ForbiddenError, NotFoundError, ValidationError
from practice_availability.database import storage_errors
from practice_availability.models.practitioner_assignment import PractitionerAssignment
from practice_availability.models.user import User
from practice_availability.services.practitioners import get_practitioner

logger = logging.getLogger(__name__)


def is_assigned(db: Session, assistant_id: str, practitioner_id: str) -> bool:
    with storage_errors(db, 'load practitioner assignment'):
        assignment = db.query(PractitionerAssignment).filter(
            PractitionerAssignment.assistant_id == assistant_id,
            PractitionerAssignment.practitioner_id == practitioner_id,
        ).first()
    return assignment is not None


def resolve_practitioner(db: Session, current_user: User, practitioner_id: str | None) -> User:
    """Target practitioner of a request. Defaults to the caller."""
    if not practitioner_id:
        if not current_user.is_practitioner:
            raise ValidationError(
                'practitioner_id is required when acting on behalf of a practitioner.',
                field='practitioner_id',
            )
        return current_user

    practitioner = get_practitioner(db, practitioner_id)
    if practitioner.practice_id != current_user.practice_id:
        logger.warning(
            'User %s asked for practitioner %s outside their practice',
            current_user.id,
            practitioner_id,
        )
        raise NotFoundError('Practitioner not found.', field='practitioner_id')
    return practitioner


def require_read_access(db: Session, current_user: User, practitioner: User) -> None:
    if current_user.is_assistant and not is_assigned(db, current_user.id, practitioner.id):
        raise ForbiddenError('Assistants can only access practitioners assigned to them.')


def require_manage_access(current_user: User, practitioner: User) -> None:
    if current_user.id == practitioner.id:
        return
    if current_user.is_admin and current_user.practice_id == practitioner.practice_id:
        return
    raise ForbiddenError('Only the practitioner or a practice admin can change availability.')


def practitioner_for_read(db: Session, current_user: User, practitioner_id: str | None) -> User:
    practitioner = resolve_practitioner(db, current_user, practitioner_id)
    require_read_access(db, current_user, practitioner)
    return practitioner


def practitioner_for_manage(db: Session, current_user: User, practitioner_id: str | None) -> User:
    practitioner = resolve_practitioner(db, current_user, practitioner_id)
    require_manage_access(current_user, practitioner)
    return practitioner


def assigned_practitioner_ids(db: Session, assistant_id: str) -> list[str]:
    with storage_errors(db, 'list practitioner assignments'):
        rows = db.query(PractitionerAssignment.practitioner_id).filter(
            PractitionerAssignment.assistant_id == assistant_id,
        ).order_by(PractitionerAssignment.created_at.asc()).all()
    return [row.practitioner_id for row in rows]
