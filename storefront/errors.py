"""Error types and the `{success, message, ...}` response envelope."""
import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    message = "Something went wrong"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class BadRequest(ApiError):
    status_code = 400
    message = "Bad request"


class Unauthenticated(ApiError):
    status_code = 401
    message = "UnAuthorized Access"


class UserNotFound(ApiError):
    status_code = 401
    message = "User not found"


class Forbidden(ApiError):
    status_code = 403
    message = "Unauthorized: Admin access required"


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


def envelope(status_code: int, success: bool, message: str, **extra: Any) -> JSONResponse:
    body = {"success": success, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, by_alias=True))


def server_error(message: str, error: Exception) -> JSONResponse:
    """500 envelope echoing the error; the traceback goes to the log."""
    logger.exception("%s: %s", message, error)
    return envelope(500, False, message, error=str(error))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return envelope(exc.status_code, False, exc.message)
