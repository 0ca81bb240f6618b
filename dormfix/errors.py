# dormfix/errors.py
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class DormFixError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DormFixError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(DormFixError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(DormFixError):
    status_code = status.HTTP_404_NOT_FOUND


class UpstreamError(DormFixError):
    """A media host or AI provider call failed."""


class InternalError(DormFixError):
    pass


def error_body(message: str, details: Any = None) -> dict:
    error = {"message": message}
    if details is not None:
        error["details"] = details
    return {"error": error}


# -------------------------
# Exception handlers
# -------------------------
async def dormfix_error_handler(request: Request, exc: DormFixError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body("Invalid request", details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error_body(error.message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DormFixError, dormfix_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
