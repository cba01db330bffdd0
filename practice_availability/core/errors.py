"""Error taxonomy for the availability service.

"Unavailable" is never one of these: a rejected slot is a successful
``AvailabilityCheckResult`` with ``available=False``.
"""

from fastapi import status


class AvailabilityError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = 'availability_error'

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        payload = {'detail': self.message, 'type': self.error_type}
        if self.field:
            payload['field'] = self.field
        return payload


class ValidationError(AvailabilityError):
    """Malformed input the caller can fix."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = 'validation_error'


class NotFoundError(AvailabilityError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = 'not_found'


class ForbiddenError(AvailabilityError):
    status_code = status.HTTP_403_FORBIDDEN
    error_type = 'forbidden'


class ConflictError(AvailabilityError):
    """Uniqueness violation, e.g. a second slot for the same day and modality."""

    status_code = status.HTTP_409_CONFLICT
    error_type = 'conflict'


class StorageError(AvailabilityError):
    """The database call failed. Never retried here and never read as an answer."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_type = 'storage_error'

    def __init__(self, message: str = 'Database unavailable. Verify DATABASE_URL and database credentials.') -> None:
        super().__init__(message)
