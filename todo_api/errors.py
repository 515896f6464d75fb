"""Error kinds and the single responder that turns them into JSON.

Every failure a handler raises is an ``ApiError`` tagged with one
``ErrorKind``. Request validation errors from pydantic, unmatched routes and
unexpected exceptions are converted to the same shape:

    {"message": "..."}                                   always
    {"message": "...", "errors": [{"path", "message"}]}  VALIDATION_FAILED
    {"message": "...", "fields": ["email"]}              CONFLICT
"""

import enum
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(enum.Enum):
    VALIDATION_FAILED = "validation_failed"
    BAD_REQUEST = "bad_request"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER_ERROR = "server_error"


STATUS_CODES = {
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.SERVER_ERROR: 500,
}


class ApiError(Exception):
    def __init__(self, kind: ErrorKind, message: str, *, errors=None, fields=None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.errors = errors or []
        self.fields = fields or []

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_response(self) -> dict:
        body = {"message": self.message}
        if self.kind is ErrorKind.VALIDATION_FAILED:
            body["errors"] = self.errors
        elif self.kind is ErrorKind.CONFLICT:
            body["fields"] = self.fields
        return body


def validation_failed(errors) -> ApiError:
    return ApiError(ErrorKind.VALIDATION_FAILED, "Validation failed", errors=errors)


def bad_request(message: str) -> ApiError:
    return ApiError(ErrorKind.BAD_REQUEST, message)


def unauthenticated(message: str) -> ApiError:
    return ApiError(ErrorKind.UNAUTHENTICATED, message)


def not_found(message: str = "not found") -> ApiError:
    return ApiError(ErrorKind.NOT_FOUND, message)


def conflict(message: str, fields) -> ApiError:
    return ApiError(ErrorKind.CONFLICT, message, fields=list(fields))


def server_error() -> ApiError:
    return ApiError(ErrorKind.SERVER_ERROR, "Server error")


def _field_path(loc) -> str:
    # drop the "body"/"query"/"path" prefix FastAPI puts in front of the field name
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts)


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from validators with "Value error, "
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


def from_validation_error(exc: RequestValidationError) -> ApiError:
    return validation_failed(
        [{"path": _field_path(e["loc"]), "message": _clean_message(e["msg"])} for e in exc.errors()]
    )


def _conflict_fields(exc: IntegrityError):
    # sqlite: "UNIQUE constraint failed: users.email"; postgres: "Key (email)=(...) already exists"
    text = str(exc.orig)
    if "UNIQUE" in text.upper() or "duplicate" in text.lower():
        if "email" in text:
            return ["email"]
        return []
    return None


def render(exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.kind is ErrorKind.SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return render(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.debug("validation error on %s: %s", request.url.path, exc.errors())
        return render(from_validation_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return render(not_found("Route not found"))
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        fields = _conflict_fields(exc)
        if fields is None:
            logger.error("integrity error on %s", request.url.path, exc_info=exc)
            return render(server_error())
        return render(conflict("Duplicate value", fields))

    # Generic error handler to return JSON errors for unexpected exceptions.
    # The server logs the traceback when the exception is re-raised afterwards.
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error("unhandled exception on %s %s: %r", request.method, request.url.path, exc)
        return render(server_error())
