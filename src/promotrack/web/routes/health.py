# src/promotrack/web/routes/health.py
"""
Health check endpoint.
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint

from ...services.container import get_container
from ..utils.request_helpers import create_error_response, create_success_response, log_requests

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
@log_requests
def system_health():
    """Report registered services and whether the record store answers."""
    container = get_container()
    report = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": container.get_config("ENVIRONMENT"),
        "store_backend": container.get_config("STORE_BACKEND"),
        "services_count": len(container.list_services()),
    }
    try:
        report["quarter_count"] = container.get("record_store").count("quarters")
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return create_error_response(f"Record store unavailable: {e}", 503, "STORE_UNAVAILABLE")

    report["status"] = "healthy"
    return create_success_response(report)
