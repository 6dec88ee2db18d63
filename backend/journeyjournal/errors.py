"""Domain failures raised by the services and their HTTP rendering."""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .config import settings

logger = logging.getLogger(__name__)


class JourneyJournalError(Exception):
    """Base class for failures the core reports to its caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    title = "An error occurred processing your request"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(JourneyJournalError):
    """A referenced trip, trip point, route, accommodation or expense does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    title = "Resource not found"

    def __init__(self, kind: str, entity_id: Any) -> None:
        super().__init__(f"{kind} with ID {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class InvalidArgumentError(JourneyJournalError):
    """A domain rule rejected the input."""

    status_code = status.HTTP_400_BAD_REQUEST
    title = "Invalid request"


class InvalidStateError(JourneyJournalError):
    """Stored data does not allow the operation to finish."""

    title = "Invalid state"


def _problem(request: Request, status_code: int, title: str, detail: str) -> Dict[str, Any]:
    return {
        "status": status_code,
        "title": title,
        "detail": detail,
        "instance": request.url.path,
    }


async def _handle_domain_error(request: Request, exc: JourneyJournalError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    body = _problem(request, exc.status_code, exc.title, exc.message)
    return JSONResponse(body, status_code=exc.status_code, media_type="application/problem+json")


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = _problem(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        JourneyJournalError.title,
        "An unexpected error occurred",
    )
    if not settings.is_production:
        body["trace"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(
        body,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/problem+json",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(JourneyJournalError, _handle_domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
