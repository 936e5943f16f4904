"""JSON failure envelopes shared by the v1 routes."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.schemas.users import ErrorResponse
from app.services.validation import messages_from_errors

VALIDATION_FAILED = "Validation failed"


def error_response(
    status_code: int,
    message: str,
    *,
    error: str | None = None,
    errors: dict[str, list[str]] | None = None,
) -> JSONResponse:
    """Build {success: false, message, error?, errors?} with the given status."""
    body = ErrorResponse(message=message, error=error, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
    )


def validation_error_response(errors: dict[str, list[str]]) -> JSONResponse:
    return error_response(
        422,
        VALIDATION_FAILED,
        errors=errors,
    )


async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI's own request errors (bad JSON, non-integer ids) in the failure envelope."""
    return validation_error_response(messages_from_errors(exc.errors()))
