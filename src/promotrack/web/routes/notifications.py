# src/promotrack/web/routes/notifications.py
"""
Externally triggered notification endpoints.

Both return a bare ``{success, count}`` JSON object so schedulers and the
assignment side effect can read the outcome without unwrapping.
"""

import hmac
import logging

from flask import Blueprint, request

from ...services.container import get_container
from ...services.notification_service import PromoAssignedEvent
from ..utils.request_helpers import (
    RequestValidationError,
    create_error_response,
    create_json_response,
    get_int_field,
    get_json_body,
    handle_request_errors,
    log_requests,
    require_fields,
    safe_get_service,
)

logger = logging.getLogger(__name__)

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api")


def _cron_authorized(secret) -> bool:
    if not secret:
        return True
    supplied = request.headers.get("Authorization", "")
    return hmac.compare_digest(supplied, f"Bearer {secret}")


@notifications_bp.route("/notify-promo-assigned", methods=["POST"])
@log_requests
@handle_request_errors
def notify_promo_assigned():
    """Body: accountId, promoName, targetUnits, terms?, assignedBy?"""
    payload = get_json_body()
    require_fields(payload, "accountId", "promoName", "targetUnits")
    target_units = get_int_field(payload, "targetUnits")
    if target_units <= 0:
        raise RequestValidationError("targetUnits must be greater than 0")

    container = get_container()
    account = safe_get_service(container, "account_service").get_account(payload["accountId"])
    event = PromoAssignedEvent(
        account_id=account.id,
        account_name=account.account_name,
        territories=frozenset(account.territories),
        promo_name=str(payload["promoName"]),
        target_units=target_units,
        terms=payload.get("terms"),
        assigned_by=payload.get("assignedBy") or "Unknown",
    )
    result = safe_get_service(container, "notification_service").notify_promo_assigned(event)
    return create_json_response(result)


@notifications_bp.route("/cron/weekly-summary", methods=["GET", "POST"])
@log_requests
@handle_request_errors
def weekly_summary():
    container = get_container()
    if not _cron_authorized(container.get_config("CRON_SECRET")):
        logger.warning("Rejected weekly summary trigger with a bad or missing cron secret")
        return create_error_response("Unauthorized", 401, "UNAUTHORIZED")

    result = safe_get_service(container, "notification_service").send_weekly_summaries()
    return create_json_response(result)
