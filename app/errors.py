# app/errors.py
from fastapi import Request, status
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    """Base class for errors raised by the service layer.

    Routers never catch these; the handler registered in ``app.main`` maps
    them to a JSON body ``{"message": ...}`` with ``status_code``.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class UpstreamError(ServiceError):
    """The news API failed (network, HTTP status or payload status)."""

    status_code = status.HTTP_502_BAD_GATEWAY


class PersistenceError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})
