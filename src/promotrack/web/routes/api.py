# src/promotrack/web/routes/api.py
"""
API blueprint with the core JSON endpoints: dashboard rollups, promo
assignment, quick unit entry and the quarter rollover.
"""

import logging

from flask import Blueprint

from ...services.container import get_container
from ..utils.request_helpers import (
    RequestValidationError,
    create_success_response,
    get_bool_field,
    get_json_body,
    handle_request_errors,
    log_requests,
    require_fields,
    resolve_actor,
    safe_get_service,
)

logger = logging.getLogger(__name__)

# Create API blueprint
api_bp = Blueprint("api", __name__, url_prefix="/api")


def _territories(payload):
    value = payload.get("territories")
    if value is None:
        return None
    if not isinstance(value, (list, str)):
        raise RequestValidationError("territories must be a list of names")
    return value


def _assignment_payload(result):
    return {
        "assignment": result.assignment,
        "promo_name": result.promo.promo_name,
        "superseded_id": result.superseded.id if result.superseded else None,
        "seed_transaction": result.seed_transaction,
        "territory_changed": result.territory_changed,
        "side_effects": result.side_effects,
    }


@api_bp.route("/dashboard")
@log_requests
@handle_request_errors
def get_dashboard():
    """Team stats header plus one progress card per assigned account."""
    container = get_container()
    dashboard = safe_get_service(container, "dashboard_service")

    rows = [
        {
            "account_id": row.account.id,
            "account_name": row.account.account_name,
            "territories": row.account.territories,
            "assignment_id": row.assignment.id,
            "promo_name": row.promo_name,
            "target_units": row.progress.target_units,
            "units_sold": row.progress.units_sold,
            "progress_pct": row.progress.progress_pct,
            "met_target": row.progress.met_target,
            "pace": row.pace,
        }
        for row in dashboard.account_progress_rows()
    ]
    return create_success_response({"summary": dashboard.team_summary(), "accounts": rows})


@api_bp.route("/accounts/<account_id>/reps")
@log_requests
@handle_request_errors
def get_rep_breakdown(account_id: str):
    container = get_container()
    account = safe_get_service(container, "account_service").get_account(account_id)
    breakdown = safe_get_service(container, "dashboard_service").rep_breakdown(account)
    return create_success_response(breakdown)


@api_bp.route("/accounts/<account_id>/promo", methods=["POST"])
@log_requests
@handle_request_errors
def assign_promo(account_id: str):
    """
    Assign an account to a promo.

    Body: promoId, targetUnits, terms?, initialUnits?, territories?, replace?
    """
    payload = get_json_body()
    require_fields(payload, "promoId", "targetUnits")

    container = get_container()
    account = safe_get_service(container, "account_service").get_account(account_id)
    actor = resolve_actor(safe_get_service(container, "rep_service"), payload)

    result = safe_get_service(container, "assignment_service").assign_promo(
        account,
        payload["promoId"],
        payload["targetUnits"],
        actor,
        terms=payload.get("terms"),
        initial_units=payload.get("initialUnits") or 0,
        territories=_territories(payload),
        replace=get_bool_field(payload, "replace", True),
    )
    return create_success_response(_assignment_payload(result), message="Promo assigned")


@api_bp.route("/assignments/<assignment_id>", methods=["PUT"])
@log_requests
@handle_request_errors
def update_assignment(assignment_id: str):
    """Edit path. Body: promoId, targetUnits, terms?, territories?"""
    payload = get_json_body()
    require_fields(payload, "promoId", "targetUnits")

    container = get_container()
    actor = resolve_actor(safe_get_service(container, "rep_service"), payload)
    result = safe_get_service(container, "assignment_service").update_assignment(
        assignment_id,
        payload["promoId"],
        payload["targetUnits"],
        actor,
        terms=payload.get("terms"),
        territories=_territories(payload),
    )
    return create_success_response(_assignment_payload(result), message="Assignment updated")


@api_bp.route("/transactions", methods=["POST"])
@log_requests
@handle_request_errors
def log_transaction():
    """Quick entry. Body: accountId, units, promoId?, note?, date?"""
    payload = get_json_body()
    require_fields(payload, "accountId", "units")

    container = get_container()
    account = safe_get_service(container, "account_service").get_account(payload["accountId"])
    actor = resolve_actor(safe_get_service(container, "rep_service"), payload)

    transaction = safe_get_service(container, "transaction_service").log_transaction(
        account,
        payload.get("promoId"),
        payload["units"],
        actor,
        note=payload.get("note"),
        transaction_date=payload.get("date"),
    )
    return create_success_response(transaction, message="Units logged")


@api_bp.route("/rollover/stats")
@log_requests
@handle_request_errors
def rollover_stats():
    container = get_container()
    rollover = safe_get_service(container, "rollover_service")
    quarters = safe_get_service(container, "quarter_service")
    return create_success_response({
        "counts": rollover.fetch_stats(),
        "progress": quarters.quarter_stats(),
    })


@api_bp.route("/rollover/execute", methods=["POST"])
@log_requests
@handle_request_errors
def rollover_execute():
    """Body: confirmation (must be the exact phrase)."""
    payload = get_json_body()
    require_fields(payload, "confirmation")

    container = get_container()
    actor = resolve_actor(safe_get_service(container, "rep_service"), payload)
    rollover = safe_get_service(container, "rollover_service")
    result = rollover.run(payload["confirmation"], actor)

    logger.info(f"Rollover executed via API by {actor.display_name if actor else 'unknown'}")
    return create_success_response(result, message=f"Quarter {result.quarter_name} closed")
