"""Domain errors and the handlers that render them as HTTP responses."""

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class StandupError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(StandupError):
    """Missing or malformed input that passed schema validation."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(StandupError):
    """The requester does not satisfy the ownership, self or membership rule."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(StandupError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(StandupError):
    """The operation would break a uniqueness or membership state invariant."""

    status_code = status.HTTP_400_BAD_REQUEST


async def standup_error_handler(request: Request, exc: StandupError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"errors": jsonable_encoder(exc.errors())},
    )
