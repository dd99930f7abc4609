import logging

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.core.request_context import request_id_ctx_var

logger = logging.getLogger("app.errors")

STORE_UNAVAILABLE_RETRY_AFTER_SECONDS = 1


class DomainError(Exception):
    """Base class for scheduling errors surfaced to API callers."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class SlotConflictError(DomainError):
    """The requested interval is no longer free.

    Callers must re-query slots; the same parameters will not succeed on retry.
    """

    status_code = status.HTTP_409_CONFLICT
    code = "slot_conflict"


class InvalidTransitionError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"


class IdempotencyConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "idempotency_key_reused"


class InvalidInputError(DomainError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "invalid_input"


def _error_payload(code: str, message: str, detail):
    return {
        "error": {
            "code": code,
            "message": message,
            "detail": detail,
        },
        "detail": detail,
        "request_id": request_id_ctx_var.get(),
    }


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(
            code=f"http_{exc.status_code}",
            message=str(exc.detail),
            detail=exc.detail,
        ),
        headers=exc.headers,
    )


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_payload(
            code="validation_error",
            message="Request validation failed",
            detail=jsonable_encoder(exc.errors()),
        ),
    )


async def domain_exception_handler(_: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(code=exc.code, message=exc.detail, detail=exc.detail),
    )


async def store_unavailable_handler(_: Request, exc: OperationalError) -> JSONResponse:
    logger.warning("store_unavailable error=%s", exc.__class__.__name__)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_payload(
            code="store_unavailable",
            message="Storage is temporarily unavailable. Retry the request.",
            detail="Storage is temporarily unavailable. Retry the request.",
        ),
        headers={"Retry-After": str(STORE_UNAVAILABLE_RETRY_AFTER_SECONDS)},
    )
