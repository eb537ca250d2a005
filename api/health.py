"""Health check endpoints."""
import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from api.auth import get_services

health_blueprint = Blueprint("health", __name__)
_logger = logging.getLogger(__name__)


@health_blueprint.route("/health", methods=["GET"])
def health_check():
    """Liveness: the process is up."""
    return jsonify({
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": current_app.config.get("ENVIRONMENT", "development"),
    }), 200


@health_blueprint.route("/health/ready", methods=["GET"])
def readiness_check():
    """Readiness: the database answers."""
    database_ok = get_services().db_manager.ping()
    if not database_ok:
        _logger.warning("Readiness check failed: database unreachable")

    status_code = 200 if database_ok else 503
    return jsonify({
        "success": database_ok,
        "message": "ready" if database_ok else "not_ready",
        "checks": {"database": database_ok},
    }), status_code
