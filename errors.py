import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message=None, **details):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class BadRequest(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not allowed"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Already exists"


class InvalidCredentials(Unauthorized):
    message = "Invalid username or password"


class NotAuthenticated(Unauthorized):
    message = "Not authenticated"


class DuplicateUsername(Conflict):
    message = "Username already exists"


def _field_name(loc) -> str:
    # drop the "body"/"query"/"path" prefix FastAPI puts in front
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in ("body", "query", "path", "cookie", "header"):
        parts = parts[1:]
    return ".".join(parts)


def validation_errors(errors) -> list[dict]:
    return [{"field": _field_name(e.get("loc", ())), "message": e.get("msg", "invalid")} for e in errors]


def summarize(field_errors: list[dict]) -> str:
    return "Invalid request: " + "; ".join(f"{e['field']}: {e['message']}" for e in field_errors)


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message, **exc.details})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    field_errors = validation_errors(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": summarize(field_errors), "errors": field_errors},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": AppError.message},
    )


def install_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
