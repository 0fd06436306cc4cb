import functools
import logging
from sqlalchemy.exc import SQLAlchemyError

log = logging.getLogger(__name__)


class ServiceError(Exception):
    """Opaque failure raised by the service layer."""
    status_code = 500

    def __init__(self, message: str = "The operation could not be completed."):
        super().__init__(message)
        self.message = message


class PatientNotFoundError(ServiceError):
    status_code = 404

    def __init__(self, code: int):
        super().__init__(f"Patient {code} not found")
        self.code = code


class PatientConflictError(ServiceError):
    status_code = 409


class PatientMergeError(ServiceError):
    status_code = 409


class PatientPhotoError(ServiceError):
    status_code = 422


class DataCollectorError(ServiceError):
    pass


class TelemetryGatewayError(ServiceError):
    status_code = 502


def translate_service_errors(fn):
    """Re-raise database errors from an async service method as ServiceError."""
    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except SQLAlchemyError as e:
            log.error(f"Database error in {fn.__qualname__}: {e.__class__.__name__}")
            raise ServiceError() from e
    return wrapper
