"""Domain errors and their HTTP rendering.

Services raise these; route handlers let them propagate. The request session
rolls back before the handler below turns the error into a response, so a
failed operation never leaves partial writes behind.
"""

import logging
from datetime import datetime
from decimal import Decimal

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from coworking.core.config import settings

logger = logging.getLogger(__name__)


class CoworkingError(Exception):
    """Base class for every error surfaced to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    rule = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(CoworkingError):
    status_code = status.HTTP_404_NOT_FOUND
    rule = "not_found"


class Unauthorized(CoworkingError):
    status_code = status.HTTP_403_FORBIDDEN
    rule = "unauthorized"


class InvalidState(CoworkingError):
    status_code = status.HTTP_409_CONFLICT
    rule = "invalid_state"


class InvalidInterval(CoworkingError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    rule = "invalid_interval"


class SlotConflict(CoworkingError):
    """An active booking already covers part of the requested window."""

    status_code = status.HTTP_409_CONFLICT
    rule = "slot_conflict"

    def __init__(self, message: str, conflict_start: datetime, conflict_end: datetime):
        self.conflict_start = conflict_start
        self.conflict_end = conflict_end
        super().__init__(message)


class InsufficientFunds(CoworkingError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    rule = "insufficient_funds"

    def __init__(self, balance: Decimal, required: Decimal):
        self.balance = balance
        self.required = required
        currency = settings.currency
        super().__init__(f"Insufficient funds. Balance: {balance} {currency}, required: {required} {currency}.")


class InternalStoreError(CoworkingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    rule = "internal_store_error"


def _render(exc: CoworkingError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": [{"rule": exc.rule, "message": exc.message}]},
    )


async def coworking_error_handler(request: Request, exc: CoworkingError) -> JSONResponse:
    return _render(exc)


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return _render(InternalStoreError("The operation could not be completed. Nothing was changed."))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CoworkingError, coworking_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
