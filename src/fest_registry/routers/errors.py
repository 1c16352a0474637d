"""Translation of domain errors into HTTP responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fest_registry.errors import DomainError, ErrorCode, ErrorKind, NotFoundError

logger = logging.getLogger(__name__)

PAYMENTS_PREFIX = "/payments"

# Rejections that are really malformed input rather than a state conflict
BAD_REQUEST_CODES = {
    ErrorCode.INVALID_CAPACITY,
    ErrorCode.INVALID_EVENT_SETTINGS,
    ErrorCode.AMOUNT_MISMATCH,
    ErrorCode.INVALID_SIGNATURE,
}
FORBIDDEN_CODES = {ErrorCode.NOT_REGISTRATION_OWNER}


def status_for(error: DomainError) -> int:
    """HTTP status for a domain error outside the payment endpoints"""
    if error.kind == ErrorKind.INTEGRITY:
        return 500
    if error.kind == ErrorKind.TRANSIENT:
        return 503
    if error.code in FORBIDDEN_CODES:
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if error.code in BAD_REQUEST_CODES:
        return 400
    return 409


def payment_status_for(error: DomainError) -> int:
    """Payment endpoints only distinguish caller errors from server errors"""
    if error.kind == ErrorKind.REJECTION:
        return 400
    return 500


def error_body(error: DomainError) -> dict:
    return {"error": error.code.value, "detail": error.message}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.kind == ErrorKind.INTEGRITY:
        logger.critical(f"Integrity error on {request.url.path}: {exc}")
    elif exc.kind == ErrorKind.TRANSIENT:
        logger.warning(f"Transient error on {request.url.path}: {exc}")
    else:
        logger.info(f"Rejected {request.method} {request.url.path}: {exc}")

    if exc.code == ErrorCode.NOT_AUTHENTICATED:
        return JSONResponse(
            status_code=401,
            content=error_body(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    if request.url.path.startswith(PAYMENTS_PREFIX):
        return JSONResponse(
            status_code=payment_status_for(exc),
            content={"success": False, **error_body(exc)},
        )
    return JSONResponse(status_code=status_for(exc), content=error_body(exc))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Payment endpoints answer malformed bodies with 400 instead of 422"""
    if request.url.path.startswith(PAYMENTS_PREFIX):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "VALIDATION_ERROR",
                "detail": jsonable_encoder(exc.errors()),
            },
        )
    return await request_validation_exception_handler(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
