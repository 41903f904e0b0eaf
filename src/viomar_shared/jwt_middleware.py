"""
JWT Middleware for Flask.

Loads the session token once per request and exposes the caller on ``g``.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any

from flask import g, request

from .errors import UnauthorizedError
from .jwt_service import (
    InvalidTokenError,
    TokenExpiredError,
    decode_token,
    extract_token_from_request,
)

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)


def init_jwt_middleware(app: Flask) -> None:
    """
    Register a before_request handler that validates the session token and
    stores its payload in ``g.current_user``.
    """

    @app.before_request
    def load_jwt_user():
        g.current_user = None
        g.jwt_token = None

        token = extract_token_from_request(request)
        if not token:
            return

        try:
            g.current_user = decode_token(token)
            g.jwt_token = token
        except TokenExpiredError:
            logger.debug(f"Expired token on {request.path}")
        except InvalidTokenError as e:
            logger.warning(f"Invalid token on {request.path}: {e}")


def get_current_user() -> dict[str, Any] | None:
    return getattr(g, "current_user", None)


def get_current_user_id() -> str | None:
    user = get_current_user()
    if not user:
        return None
    user_id = user.get("user_id", user.get("sub"))
    return str(user_id) if user_id is not None else None


def get_current_role() -> str | None:
    user = get_current_user()
    role = user.get("role") if user else None
    return role if isinstance(role, str) and role.strip() else None


def jwt_required(f):
    """
    Decorator to require a valid session token for a route.

    Raises UnauthorizedError (401) if no valid token present.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not get_current_user():
            raise UnauthorizedError("Autenticacion requerida")
        return f(*args, **kwargs)

    return decorated_function
