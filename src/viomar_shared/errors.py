"""
Error taxonomy shared by services and route handlers.

Every error carries the HTTP status the boundary should answer with, so the
centralized handlers in ``error_handlers`` stay a thin mapping layer.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception for controlled application errors."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        if status is not None:
            self.status = status
        super().__init__(message)


class ValidationError(AppError):
    """Bad or missing input, invalid enum value."""

    status = HTTPStatus.BAD_REQUEST


class NotFoundError(AppError):
    status = HTTPStatus.NOT_FOUND


class ConflictError(AppError):
    status = HTTPStatus.CONFLICT


class UnauthorizedError(AppError):
    status = HTTPStatus.UNAUTHORIZED


class ForbiddenError(AppError):
    status = HTTPStatus.FORBIDDEN


class RateLimitedError(AppError):
    status = HTTPStatus.TOO_MANY_REQUESTS

    def __init__(
        self,
        retry_after: int,
        limit: int | None = None,
        remaining: int = 0,
        message: str = "Too Many Requests",
    ):
        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining
        super().__init__(message)


class StoreUnavailableError(AppError):
    """The persistence layer could not be reached."""

    status = HTTPStatus.SERVICE_UNAVAILABLE


STORE_UNAVAILABLE_MESSAGE = "Base de datos no disponible"
STORE_HOST_UNRESOLVED_MESSAGE = "No se pudo resolver el host de la base de datos"
STORE_TIMEOUT_MESSAGE = "Tiempo de espera agotado al conectar la base de datos"


def _error_code(exc: BaseException) -> str:
    for candidate in (exc, getattr(exc, "orig", None), exc.__cause__):
        if candidate is None:
            continue
        code = getattr(candidate, "code", None) or getattr(candidate, "pgcode", None)
        if isinstance(code, str) and code:
            return code.upper()
    return ""


def _error_text(exc: BaseException) -> str:
    parts = [str(exc)]
    orig = getattr(exc, "orig", None)
    if orig is not None:
        parts.append(str(orig))
    if exc.__cause__ is not None:
        parts.append(str(exc.__cause__))
    return " ".join(parts).lower()


def classify_store_error(exc: BaseException) -> StoreUnavailableError | None:
    """
    Map a low level failure to ``StoreUnavailableError`` when it is an
    infrastructure fault (connection refused, DNS failure, timeout).

    Returns None for anything else so callers can treat it as a logic error.
    """
    if isinstance(exc, StoreUnavailableError):
        return exc

    code = _error_code(exc)
    text = _error_text(exc)

    if code == "ECONNREFUSED" or "econnrefused" in text or "connection refused" in text:
        return StoreUnavailableError(STORE_UNAVAILABLE_MESSAGE)

    if (
        code == "ENOTFOUND"
        or "enotfound" in text
        or "could not translate host name" in text
        or "name or service not known" in text
    ):
        return StoreUnavailableError(STORE_HOST_UNRESOLVED_MESSAGE)

    if (
        code == "ETIMEDOUT"
        or isinstance(exc, PoolTimeoutError)
        or "etimedout" in text
        or "timeout" in text
        or "timed out" in text
    ):
        return StoreUnavailableError(STORE_TIMEOUT_MESSAGE)

    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError)) and (
        getattr(exc, "connection_invalidated", False) or "connect" in text
    ):
        return StoreUnavailableError(STORE_UNAVAILABLE_MESSAGE)

    return None
