import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')

from practice_availability.auth.jwt_handler import create_access_token  # noqa: E402
from practice_availability.database import Base  # noqa: E402
from practice_availability.models.availability import WeeklyAvailabilitySlot  # noqa: E402, F401
from practice_availability.models.availability_exception import AvailabilityException  # noqa: E402, F401
from practice_availability.models.practice import Practice  # noqa: E402
from practice_availability.models.practitioner_assignment import PractitionerAssignment  # noqa: E402
from practice_availability.models.user import (  # noqa: E402
    ROLE_ADMIN,
    ROLE_ASSISTANT,
    ROLE_PRACTITIONER,
    User,
)


@pytest.fixture
def engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def make_user(db, role: str, practice: Practice, email: str) -> User:
    user = User(email=email, full_name=email.split('@')[0].title(), role=role, practice_id=practice.id)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def practice(db) -> Practice:
    practice = Practice(name='Riverside Physio', timezone='America/New_York')
    db.add(practice)
    db.commit()
    db.refresh(practice)
    return practice


@pytest.fixture
def other_practice(db) -> Practice:
    practice = Practice(name='Hilltop Clinic', timezone='Europe/London')
    db.add(practice)
    db.commit()
    db.refresh(practice)
    return practice


@pytest.fixture
def practitioner(db, practice) -> User:
    return make_user(db, ROLE_PRACTITIONER, practice, 'dana@riverside.example')


@pytest.fixture
def colleague(db, practice) -> User:
    return make_user(db, ROLE_PRACTITIONER, practice, 'sam@riverside.example')


@pytest.fixture
def admin(db, practice) -> User:
    return make_user(db, ROLE_ADMIN, practice, 'office@riverside.example')


@pytest.fixture
def assistant(db, practice, practitioner) -> User:
    assistant = make_user(db, ROLE_ASSISTANT, practice, 'alex@riverside.example')
    db.add(PractitionerAssignment(assistant_id=assistant.id, practitioner_id=practitioner.id, practice_id=practice.id))
    db.commit()
    return assistant


@pytest.fixture
def outsider(db, other_practice) -> User:
    return make_user(db, ROLE_PRACTITIONER, other_practice, 'lee@hilltop.example')


def auth_headers(user: User) -> dict[str, str]:
    return {'Authorization': f'Bearer {create_access_token(subject=user.id, role=user.role)}'}


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from practice_availability.database import get_db
    from practice_availability.main import app
    from practice_availability.routes.availability_routes import ensure_database_ready

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[ensure_database_ready] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    return auth_headers
