# src/promotrack/web/blueprints.py
"""
Blueprint registration and service validation.
"""
import logging
from typing import Any, Dict

from flask import Flask

from ..services.container import get_container
from .routes.api import api_bp
from .routes.health import health_bp
from .routes.notifications import notifications_bp

logger = logging.getLogger(__name__)

BLUEPRINTS = (api_bp, notifications_bp, health_bp)

# Services every route depends on; resolved once at startup to fail fast.
REQUIRED_SERVICES = (
    "record_store",
    "account_service",
    "assignment_service",
    "transaction_service",
    "dashboard_service",
    "notification_service",
    "quarter_service",
    "rep_service",
)


def register_blueprints(app: Flask) -> None:
    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)
        logger.info(f"Registered {blueprint.name} blueprint")


def configure_blueprint_services(app: Flask) -> None:
    """Attach the container to the app and check the required services resolve."""
    container = get_container()
    app.config["SERVICE_CONTAINER"] = container

    missing = []
    for name in REQUIRED_SERVICES:
        try:
            container.get(name)
        except Exception as e:
            logger.error(f"Service '{name}' failed validation: {e}")
            missing.append(name)

    if missing:
        raise RuntimeError(f"Required services unavailable: {', '.join(missing)}")
    logger.info(f"Validated {len(REQUIRED_SERVICES)} required services")


def initialize_blueprints(app: Flask) -> None:
    configure_blueprint_services(app)
    register_blueprints(app)


def get_blueprint_info() -> Dict[str, Any]:
    return {bp.name: {"url_prefix": bp.url_prefix} for bp in BLUEPRINTS}
