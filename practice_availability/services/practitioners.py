from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from practice_availability.core.errors import NotFoundError
from practice_availability.core.timezones import get_zone
from practice_availability.database import storage_errors
from practice_availability.models.practice import Practice
from practice_availability.models.user import ROLE_PRACTITIONER, User


def get_practitioner(db: Session, practitioner_id: str) -> User:
    with storage_errors(db, 'load practitioner'):
        practitioner = db.query(User).filter(
            User.id == practitioner_id,
            User.role == ROLE_PRACTITIONER,
        ).first()

    if practitioner is None:
        raise NotFoundError('Practitioner not found.', field='practitioner_id')
    return practitioner


def get_practice_zone(db: Session, practice_id: str | None) -> ZoneInfo:
    if practice_id is None:
        return get_zone(None)

    with storage_errors(db, 'load practice'):
        practice = db.query(Practice).filter(Practice.id == practice_id).first()

    return get_zone(practice.timezone if practice else None)
