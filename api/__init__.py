"""Flask application factory for the flight booking API."""
import atexit
import logging
import sys
from typing import Optional

from flask import Flask, request
from flask_cors import CORS

from api.config import Config, get_config
from api.container import ServiceContainer
from api.errors import init_error_handlers
from api.bookings import bookings_blueprint
from api.flights import flights_blueprint
from api.health import health_blueprint
from api.users import users_blueprint


def create_app(config_class=None, services: Optional[ServiceContainer] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_class: Optional configuration class (defaults to FLASK_ENV)
        services: Prebuilt services; when omitted a pool is opened from config

    Returns:
        Configured Flask application
    """
    config = config_class or get_config()
    _configure_logging(config)
    _logger = logging.getLogger(__name__)

    app = Flask(__name__)
    app.config.from_object(config)

    if services is None:
        config.validate()
        services = ServiceContainer.from_config(config)
        atexit.register(services.shutdown)
    app.extensions["services"] = services

    CORS(
        app,
        origins=config.CORS_ORIGINS,
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.before_request
    def log_request():
        _logger.info("%s %s", request.method, request.path)

    init_error_handlers(app)

    app.register_blueprint(health_blueprint)
    app.register_blueprint(users_blueprint)
    app.register_blueprint(flights_blueprint)
    app.register_blueprint(bookings_blueprint)

    _logger.info("Application ready - registered blueprints: %s", list(app.blueprints))
    return app


def _configure_logging(config) -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, getattr(config, "LOG_LEVEL", "INFO"), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )


__all__ = ["create_app", "Config"]
