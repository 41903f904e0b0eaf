"""
JWT Service - session token generation and validation.

The back-office session is a stateless HS256 token carried in the
``auth_token`` cookie (an ``Authorization: Bearer`` header is also accepted).
"""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Any

import jwt
from flask import Request, current_app

from .config import get_secret_key
from .datetime_utils import utcnow

JWT_ALGORITHM = "HS256"
DEFAULT_COOKIE_NAME = "auth_token"


def get_token_expiry_days() -> int:
    try:
        return int(current_app.config.get("JWT_EXPIRES_DAYS", 7))
    except RuntimeError:
        return int(os.getenv("JWT_EXPIRES_DAYS", "7"))


def get_cookie_name() -> str:
    try:
        return current_app.config.get("AUTH_COOKIE_NAME", DEFAULT_COOKIE_NAME)
    except RuntimeError:
        return os.getenv("AUTH_COOKIE_NAME", DEFAULT_COOKIE_NAME)


class JWTError(Exception):
    """Base exception for JWT errors."""

    def __init__(self, message: str, status: int = 401):
        self.message = message
        self.status = status
        super().__init__(message)


class TokenExpiredError(JWTError):
    """Token has expired."""

    def __init__(self):
        super().__init__("Token expired", 401)


class InvalidTokenError(JWTError):
    """Token is invalid or malformed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, 401)


def get_jwt_secret() -> str:
    """Get the signing secret from the Flask config or the environment."""
    try:
        secret = current_app.config.get("SECRET_KEY")
        if secret:
            return secret
    except RuntimeError:
        pass

    secret = get_secret_key()
    if not secret:
        raise RuntimeError("SECRET_KEY or JWT_SECRET must be configured")
    return secret


def create_access_token(
    user_id: int | str,
    name: str | None,
    role: str | None,
    expires_days: int | None = None,
) -> str:
    """
    Create a session token for a back-office user.

    Args:
        user_id: Employee id (stored as ``sub`` and ``user_id``)
        name: Display name
        role: Role name; authorization reads only this claim
        expires_days: Token lifetime in days (default: JWT_EXPIRES_DAYS)

    Returns:
        Encoded JWT token string
    """
    secret = get_jwt_secret()
    expires = expires_days or get_token_expiry_days()

    now = utcnow()
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=expires),
        "user_id": user_id,
        "name": name,
        "role": role,
    }

    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a session token.

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If the signature or structure is invalid
    """
    secret = get_jwt_secret()

    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(str(e))


def extract_token_from_request(request: Request) -> str | None:
    """
    Extract the session token from the request.

    Checks the session cookie first, then an ``Authorization: Bearer`` header.
    """
    token = request.cookies.get(get_cookie_name())
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None

    return None
