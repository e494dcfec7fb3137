"""
Error taxonomy and the exception handlers that turn errors into JSON.

Every failure leaves the API as {"success": false, "error": <message>}.
Outside production a "details" field carries the underlying message.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict] = None, details=None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.message,
            headers=headers,
        )
        self.details = details


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request parameters"


class AuthenticationError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    message = "Resource already exists"


class InternalError(ApiError):
    pass


def error_body(message: str, details=None, show_details: bool = False) -> dict:
    body = {"success": False, "error": message}
    if show_details and details is not None:
        body["details"] = details
    return body


def _show_details(request: Request) -> bool:
    return request.app.state.settings.show_error_details


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(
            str(exc.detail),
            details=getattr(exc, "details", None),
            show_details=_show_details(request),
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Missing or malformed input is a client error, reported as 400 rather than FastAPI's 422
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            ValidationError.message,
            details=jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
            show_details=_show_details(request),
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(InternalError.message, details=str(exc), show_details=_show_details(request)),
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
