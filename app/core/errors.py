# app/core/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


class TicketingError(Exception):
    """Base class for errors the API maps onto HTTP responses."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TicketingError):
    status_code = 400


class NotFoundError(TicketingError):
    status_code = 404

    def __init__(self, message: str = "Ticket not found"):
        super().__init__(message)


class StorageError(TicketingError):
    """Store unreachable or a constraint failed.

    ``message`` is the caller-safe text; the driver error stays in the logs.
    """

    status_code = 500


class NotificationError(TicketingError):
    """Outbound task-routing call failed. Never reaches an HTTP caller."""


def _clean_msg(msg: str) -> str:
    return msg.removeprefix("Value error, ")


async def ticketing_error_handler(request: Request, exc: TicketingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        logger.error("%s %s received a malformed JSON body", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR})

    details = [
        {"loc": [str(part) for part in e.get("loc", ())], "msg": _clean_msg(e.get("msg", "")), "type": e.get("type")}
        for e in errors
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "; ".join(d["msg"] for d in details), "errors": details},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TicketingError, ticketing_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
