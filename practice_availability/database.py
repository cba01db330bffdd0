import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Generator

from sqlalchemy import DateTime, create_engine, inspect, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.types import TypeDecorator

from practice_availability.core import config
from practice_availability.core.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    if database_url.startswith('sqlite'):
        return {'connect_args': {'check_same_thread': False}}
    if database_url.startswith('postgresql'):
        return {
            'pool_pre_ping': True,
            'connect_args': {'options': f'-c statement_timeout={config.DATABASE_STATEMENT_TIMEOUT_MS}'},
        }
    return {'pool_pre_ping': True}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.DATABASE_ECHO,
    **_engine_options(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp stored as UTC.

    Naive values are taken to be UTC already. Values read back always carry
    ``timezone.utc``, including on backends that drop the offset (SQLite).
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def storage_errors(db: Session, action: str) -> Generator[None, None, None]:
    """Roll back and re-raise any SQLAlchemy failure as a StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database failure while attempting to %s.', action)
        raise StorageError() from exc


def commit(db: Session, action: str) -> None:
    """Commit the session's unit of work, rolling everything back on failure."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Integrity violation while attempting to %s: %s', action, exc.orig)
        raise ConflictError(f'Could not {action}: a conflicting record already exists.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database failure while attempting to %s.', action)
        raise StorageError() from exc


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError:
        logger.exception('Database error during request.')
        db.rollback()
        raise
    finally:
        db.close()


_schema_lock = Lock()
_availability_schema_checked = False

AVAILABILITY_INDEXES = [
    (
        'practitioner_availability',
        'CREATE INDEX IF NOT EXISTS idx_practitioner_availability_lookup '
        'ON practitioner_availability(practitioner_id, day_of_week, modality)',
    ),
    (
        'practitioner_availability',
        'CREATE INDEX IF NOT EXISTS idx_practitioner_availability_practice '
        'ON practitioner_availability(practice_id)',
    ),
    (
        'availability_exceptions',
        'CREATE INDEX IF NOT EXISTS idx_availability_exceptions_window '
        'ON availability_exceptions(practitioner_id, start_at, end_at)',
    ),
    (
        'availability_exceptions',
        'CREATE INDEX IF NOT EXISTS idx_availability_exceptions_active '
        'ON availability_exceptions(practitioner_id, is_active)',
    ),
]


def ensure_availability_schema(bind=None) -> None:
    global _availability_schema_checked

    if _availability_schema_checked:
        return

    with _schema_lock:
        if _availability_schema_checked:
            return

        target = bind or engine
        table_names = set(inspect(target).get_table_names())

        with target.begin() as connection:
            for table_name, statement in AVAILABILITY_INDEXES:
                if table_name in table_names:
                    connection.execute(text(statement))

        _availability_schema_checked = True


def reset_schema_check() -> None:
    global _availability_schema_checked

    with _schema_lock:
        _availability_schema_checked = False
