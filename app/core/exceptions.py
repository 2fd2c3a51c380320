"""
Application error taxonomy and global exception handlers.

Services raise these directly; they are ``HTTPException`` subclasses, so
FastAPI renders them as ``{"detail": ...}`` with the matching status code.
"""
from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)


class ValidationError(HTTPException):
    """Malformed request, past-dated booking, time outside the schedule."""
    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class DoctorUnavailableError(ValidationError):
    """The doctor has no enabled schedule window on the requested weekday."""
    def __init__(self, day_of_week: str):
        self.day_of_week = day_of_week
        super().__init__(f"Doctor is not available on {day_of_week}s")


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    """
    Slot already taken.

    Raised both by the pre-insert check and when the database unique index
    rejects the insert; callers see the same shape either way.
    """
    def __init__(self, detail: str = "Slot already booked"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InfrastructureError(HTTPException):
    def __init__(self, detail: str = "An unexpected error occurred"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """
    Handler for database errors that escaped the service layer.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Generic 500 response; the full error is only logged
    """
    logger.exception(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": InfrastructureError().detail}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for malformed requests: bad types, missing fields, unknown enum values.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: 400 with the field-level error list
    """
    errors = jsonable_encoder(exc.errors())
    logger.info(f"Rejected {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Validation error",
            "errors": errors
        }
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
