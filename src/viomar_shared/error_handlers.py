"""
Centralized error handlers for the Flask application.
"""

from http import HTTPStatus

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .errors import AppError, RateLimitedError, classify_store_error
from .logging_config import get_logger
from .serializers import error_response

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Error interno del servidor"


def register_error_handlers(app: Flask) -> None:
    """
    Register centralized error handlers for the Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        status = int(e.status)
        if status >= 500:
            logger.error(f"{type(e).__name__}: {e.message}")
        else:
            logger.warning(f"{type(e).__name__}: {e.message}")

        if isinstance(e, RateLimitedError):
            response = jsonify(error_response(e.message, {"retry_after": e.retry_after}))
            response.headers["Retry-After"] = str(e.retry_after)
            if e.limit is not None:
                response.headers["X-RateLimit-Limit"] = str(e.limit)
            response.headers["X-RateLimit-Remaining"] = str(e.remaining)
        else:
            response = jsonify(error_response(e.message))
        response.status_code = status
        return response

    @app.errorhandler(PydanticValidationError)
    def handle_pydantic_validation_error(e: PydanticValidationError):
        logger.warning(f"Pydantic validation error: {e}")
        details = e.errors(include_url=False, include_context=False, include_input=False)
        return jsonify(
            error_response("Datos inválidos", {"details": details})
        ), HTTPStatus.BAD_REQUEST

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        classified = classify_store_error(e)
        if classified is not None:
            logger.error(f"Store unavailable: {e}")
            return jsonify(error_response(classified.message)), HTTPStatus.SERVICE_UNAVAILABLE

        logger.error(f"Database error: {e}", exc_info=True)
        return jsonify(error_response(INTERNAL_ERROR_MESSAGE)), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        logger.warning(f"HTTP exception {e.code}: {e.description}")
        return jsonify(error_response(e.description or str(e))), e.code

    @app.errorhandler(Exception)
    def handle_generic_exception(e: Exception):
        classified = classify_store_error(e)
        if classified is not None:
            logger.error(f"Store unavailable: {e}")
            return jsonify(error_response(classified.message)), HTTPStatus.SERVICE_UNAVAILABLE

        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify(error_response(INTERNAL_ERROR_MESSAGE)), HTTPStatus.INTERNAL_SERVER_ERROR
