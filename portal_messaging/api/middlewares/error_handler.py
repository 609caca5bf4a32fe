# portal_messaging/api/middlewares/error_handler.py
import logging

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from portal_messaging.config.settings import settings
from portal_messaging.core.exceptions import AppError

logger = logging.getLogger(__name__)


def _pydantic_details(err: PydanticValidationError) -> list[dict]:
    details = []
    for e in err.errors(include_url=False, include_context=False, include_input=False):
        field = ".".join(str(p) for p in e.get("loc", ()))
        details.append({"field": field, "message": e.get("msg", "Invalid value")})
    return details


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logger.error("Server error: %s", err)
            if not settings.debug:
                return jsonify({"error": "Internal server error"}), err.status_code

        payload = {"error": str(err)}
        if err.details is not None:
            payload["details"] = err.details
        return jsonify(payload), err.status_code

    @app.errorhandler(PydanticValidationError)
    def handle_validation_error(err: PydanticValidationError):
        return jsonify({"error": "Validation failed", "details": _pydantic_details(err)}), 400

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(err: RequestEntityTooLarge):
        return jsonify({"error": "Payload too large"}), 413

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(err: SQLAlchemyError):
        logger.exception("Database error")
        if settings.debug:
            return jsonify({"error": str(err)}), 500
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("Unexpected error")

        if settings.debug:
            return jsonify({"error": str(err)}), 500  # ✅ mostra a msg em dev

        return jsonify({"error": "Internal server error"}), 500
