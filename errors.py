import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


class AppError(Exception):
    """Base for errors that map to a client-safe message and status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


def error_response(message: str, status_code: int, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def validation_message(exc: RequestValidationError) -> str:
    """First pydantic error, phrased for a client."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    if first.get("type") == "value_error" and "error" in first.get("ctx", {}):
        return str(first["ctx"]["error"])

    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if first.get("type") == "missing" and loc:
        name = loc[-1]
        return f"{name[:1].upper()}{name[1:]} is required"
    if loc:
        return f"{loc[-1]}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "Invalid request")


async def app_error_handler(request: Request, exc: AppError):
    return error_response(exc.message, exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(validation_message(exc), status.HTTP_400_BAD_REQUEST)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Route not found"
    else:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(message, exc.status_code, headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    # runs in ServerErrorMiddleware, outside the app's header middleware
    return error_response(
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers=SECURITY_HEADERS,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
