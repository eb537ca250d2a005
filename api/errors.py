"""JSON error handlers."""
import logging

from flask import jsonify, request, current_app
from werkzeug.exceptions import HTTPException

from backend.errors import ReservationError, ValidationError

logger = logging.getLogger(__name__)


def error_response(message, status_code, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status_code


def init_error_handlers(app) -> None:
    """
    Initialize error handlers for the application.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(ReservationError)
    def reservation_error(error):
        """Service failures carry their own status code."""
        if error.status_code >= 500:
            logger.error("Service unavailable on %s %s: %s", request.method, request.path, error)
        if isinstance(error, ValidationError) and error.errors:
            return error_response(error.message, error.status_code, errors=error.errors)
        return error_response(error.message, error.status_code)

    @app.errorhandler(404)
    def not_found(error):
        """Handle unknown endpoints."""
        return error_response("Endpoint not found", 404, path=request.path, method=request.method)

    @app.errorhandler(HTTPException)
    def http_error(error):
        return error_response(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def internal_error(error):
        """Handle anything the services did not classify."""
        logger.error("Unhandled error on %s %s", request.method, request.path, exc_info=error)
        detail = str(error) if current_app.config.get("DEBUG") else "An error occurred"
        return error_response("Internal server error", 500, error=detail)
