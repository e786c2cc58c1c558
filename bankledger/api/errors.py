"""
Exception handlers producing the structured error envelope.

Every failure leaves the API as
``{"success": false, "error": {"code": ..., "message": ..., "field": ...}}``.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bankledger.core.errors import ErrorCodes, LedgerError
from bankledger.schemas.error import ErrorDetail, ErrorOut

logger = logging.getLogger(__name__)

_STATUS_TO_CODE = {
    401: ErrorCodes.UNAUTHORIZED,
    404: ErrorCodes.ACCOUNT_NOT_FOUND,
    422: ErrorCodes.VALIDATION_ERROR,
}


def create_error_response(code: str, message: str, status_code: int, field: str | None = None) -> JSONResponse:
    body = ErrorOut(error=ErrorDetail(code=code, message=message, field=field))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"Ledger error on {request.url.path}: {exc.code} - {exc.message}")
    return create_error_response(exc.code, exc.message, exc.status_code, exc.field)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first_error = exc.errors()[0]
    field = ".".join(str(loc) for loc in first_error.get("loc", ()) if loc != "body")
    message = first_error.get("msg", "Validation error")
    logger.warning(f"Invalid request body on {request.url.path}: {field}: {message}")
    return create_error_response(ErrorCodes.VALIDATION_ERROR, f"Invalid request body: {message}", 422, field or None)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        code = exc.detail.get("code", ErrorCodes.INTERNAL_ERROR)
        message = exc.detail.get("message", "Request failed")
    else:
        code = _STATUS_TO_CODE.get(exc.status_code, ErrorCodes.INVALID_REQUEST if exc.status_code < 500 else ErrorCodes.INTERNAL_ERROR)
        message = str(exc.detail)
    response = create_error_response(code, message, exc.status_code)
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unexpected error on {request.url.path}", exc_info=exc)
    # Don't expose internal error details.
    return create_error_response(
        ErrorCodes.INTERNAL_ERROR,
        "An unexpected error occurred. Please try again later.",
        500,
    )


def add_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
