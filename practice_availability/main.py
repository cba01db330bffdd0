import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from practice_availability.core import config
from practice_availability.core.errors import AvailabilityError
from practice_availability.database import Base, engine, ensure_availability_schema
from practice_availability.models import (  # noqa: F401 - registers tables on Base.metadata
    availability,
    availability_exception,
    practice,
    practitioner_assignment,
    user,
)
from practice_availability.routes import auth_routes, availability_routes, exception_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI(title='Practice Availability API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_availability_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(AvailabilityError)
async def handle_availability_error(request: Request, exc: AvailabilityError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _validation_message(error: dict) -> str:
    message = error.get('msg', 'Invalid value')
    # pydantic prefixes messages raised from validators
    return message.removeprefix('Value error, ')


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get('loc', ()) if part not in ('body', 'query', 'path')]
        errors.append({'field': '.'.join(location) or None, 'message': _validation_message(error)})

    first = errors[0] if errors else {'field': None, 'message': 'Invalid request'}
    content = {'detail': first['message'], 'type': 'validation_error', 'errors': errors}
    if first['field']:
        content['field'] = first['field']
    return JSONResponse(status_code=400, content=content)


@app.get('/')
def root():
    return {'status': 'Practice Availability API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(exception_routes.router, prefix='/availability/exceptions')
