"""
Factory for the back-office Flask API.

Uses JWT cookies for authentication; every route is under ``/api``.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from viomar_shared.config import load_config, validate_required_env_vars
from viomar_shared.db import get_session, init_db, init_engine
from viomar_shared.error_handlers import register_error_handlers
from viomar_shared.extensions import csrf
from viomar_shared.jwt_middleware import init_jwt_middleware
from viomar_shared.logging_config import configure_logging
from viomar_shared.models import Base
from viomar_shared.security_middleware import (
    build_rate_limiter,
    configure_security_headers,
    configure_session_security,
)
from viomar_shared.services.role_service import ensure_default_roles

logger = logging.getLogger(__name__)

DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def create_app(config_overrides: dict[str, Any] | None = None) -> Flask:
    """
    Build the back-office API application.

    ``config_overrides`` is applied on top of the environment-derived Flask
    config (tests pass ``DATABASE_URL``, ``SECRET_KEY`` and ``TESTING``).
    """
    overrides = dict(config_overrides or {})

    # Fail fast on missing secrets outside of tests
    if not overrides.get("TESTING"):
        validate_required_env_vars(skip_in_debug=True)

    config = load_config("viomar-backoffice")

    app = Flask(__name__)
    app.config["APP_NAME"] = config.app_name
    app.config["SECRET_KEY"] = config.secret_key
    app.config["DATABASE_URL"] = config.sqlalchemy_uri
    app.config["DEBUG_MODE"] = config.debug_mode
    app.config["DEBUG"] = config.flask_debug
    app.config["LOG_LEVEL"] = config.log_level
    app.config["AUTH_COOKIE_NAME"] = config.auth_cookie_name
    app.config["JWT_EXPIRES_DAYS"] = config.jwt_expires_days
    app.config["RATELIMIT_ENABLED"] = config.ratelimit_enabled
    app.config["RATELIMIT_STORAGE_URL"] = config.ratelimit_storage_url
    app.config["CORS_ALLOWED_ORIGINS"] = config.cors_allowed_origins
    app.config["NUM_PROXIES"] = config.num_proxies
    app.config.update(overrides)
    app.json.ensure_ascii = False

    configure_logging(config.app_name, app.config["LOG_LEVEL"])

    init_engine(config, app.config["DATABASE_URL"])
    init_db(Base.metadata)
    with get_session() as session:
        ensure_default_roles(session)

    init_jwt_middleware(app)

    app.extensions["rate_limiter"] = build_rate_limiter(
        app.config.get("RATELIMIT_STORAGE_URL"),
        enabled=bool(app.config.get("RATELIMIT_ENABLED", True)),
    )

    configure_security_headers(app)
    configure_session_security(app)
    register_error_handlers(app)

    # ProxyFix: Trust X-Forwarded-* headers from reverse proxy
    num_proxies = int(app.config.get("NUM_PROXIES") or 0)
    if num_proxies > 0:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=num_proxies,
            x_proto=num_proxies,
            x_host=num_proxies,
            x_port=num_proxies,
        )

    # CSRF Protection configuration (BEFORE registering blueprints)
    app.config.setdefault("WTF_CSRF_ENABLED", True)
    app.config["WTF_CSRF_TIME_LIMIT"] = 3600
    app.config["WTF_CSRF_CHECK_DEFAULT"] = False
    csrf.init_app(app)

    from backoffice_app.routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    # Exempt API routes from CSRF; they authenticate with the JWT cookie
    for blueprint in app.blueprints.values():
        csrf.exempt(blueprint)

    allowed_origins = app.config.get("CORS_ALLOWED_ORIGINS") or []
    if config.debug_mode or not allowed_origins:
        allowed_origins = DEV_ORIGINS
    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins, "supports_credentials": True}},
        supports_credentials=True,
    )

    logger.info(f"{config.app_name} ready")
    return app
