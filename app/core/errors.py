"""Error taxonomy shared by services and the HTTP layer.

Every ``AppError`` carries the status code its exception handler responds
with. ``CacheFailure`` is deliberately outside that hierarchy: cache errors
are recovered inside the service layer and never reach a request handler.
"""

from fastapi import status


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "internal error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.detail)
        if detail is not None:
            self.detail = detail


class TaskNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "task not found"


class PermissionDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "permission denied"


class TaskValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "invalid task"


class OriginFailure(AppError):
    """The persistent store could not serve the request."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "data unavailable"


class DeadlineExceeded(AppError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    detail = "deadline exceeded"


class EmailAlreadyRegistered(AppError):
    status_code = status.HTTP_409_CONFLICT
    detail = "email already registered"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "invalid credentials"


class CacheFailure(Exception):
    """Any cache store error (read, write, delete)."""


class CacheDecodeError(CacheFailure):
    """Cached bytes could not be decoded into task records."""
