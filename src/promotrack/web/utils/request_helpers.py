# src/promotrack/web/utils/request_helpers.py
"""
Request and response helper utilities for Flask routes.
"""
import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from flask import Response, request

from ...models.entities import Actor
from ...services.errors import (
    DuplicateAssignmentError,
    NotFoundError,
    PartialRolloverError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class RequestValidationError(Exception):
    """Raised when request parameters are invalid."""
    pass


def _json_default(obj):
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    if is_dataclass(obj):
        return asdict(obj)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def serialize_for_json(data: Any) -> str:
    """Serialize dataclasses, enums, territory sets and dates."""
    if is_dataclass(data) and not isinstance(data, type):
        data = asdict(data)
    return json.dumps(data, default=_json_default, ensure_ascii=False)


def create_json_response(data: Any, status_code: int = 200) -> Response:
    """Create standardized JSON response."""
    try:
        return Response(serialize_for_json(data), status=status_code, mimetype='application/json')
    except (TypeError, ValueError) as e:
        logger.error(f"Error creating JSON response: {e}")
        error_data = json.dumps({'error': 'Serialization failed', 'status': 500})
        return Response(error_data, status=500, mimetype='application/json')


def create_success_response(data: Any, message: Optional[str] = None) -> Response:
    """Create standardized success response."""
    response_data = {'success': True, 'data': data}
    if message:
        response_data['message'] = message
    return create_json_response(response_data)


def create_error_response(error_message: str, status_code: int = 400, error_code: Optional[str] = None) -> Response:
    """Create standardized error response."""
    response_data = {'success': False, 'error': error_message, 'status': status_code}
    if error_code:
        response_data['error_code'] = error_code
    return create_json_response(response_data, status_code)


def get_json_body() -> Dict[str, Any]:
    """Return the request's JSON object body or raise RequestValidationError."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise RequestValidationError("Request body must be a JSON object")
    return payload


def require_fields(payload: Dict[str, Any], *names: str) -> None:
    missing = [n for n in names if payload.get(n) in (None, "")]
    if missing:
        raise RequestValidationError(f"Missing required fields: {', '.join(missing)}")


def get_int_field(payload: Dict[str, Any], name: str, default: Optional[int] = None) -> Optional[int]:
    value = payload.get(name, default)
    if value is None:
        return None
    if isinstance(value, bool):
        raise RequestValidationError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RequestValidationError(f"{name} must be an integer") from None


def get_bool_field(payload: Dict[str, Any], name: str, default: bool) -> bool:
    value = payload.get(name, default)
    if not isinstance(value, bool):
        raise RequestValidationError(f"{name} must be true or false")
    return value


def resolve_actor(rep_service, payload: Optional[Dict[str, Any]] = None) -> Optional[Actor]:
    """
    The acting rep, from ``repId`` in the body or the ``X-Rep-Id`` header.

    Unknown ids still attribute the write; the display name falls back to
    ``actorName`` or ``assignedBy`` from the body.
    """
    payload = payload or {}
    rep_id = payload.get('repId') or request.headers.get('X-Rep-Id')
    fallback_name = payload.get('actorName') or payload.get('assignedBy')
    rep = rep_service.find_rep(rep_id) if rep_id else None
    if rep is not None:
        return rep.as_actor()
    if rep_id or fallback_name:
        return Actor(id=rep_id, name=fallback_name or "Unknown")
    return None


def safe_get_service(container, service_name: str):
    """Get a service from the container or raise RequestValidationError."""
    try:
        return container.get(service_name)
    except Exception as e:
        logger.error(f"Failed to get service '{service_name}': {e}")
        raise RequestValidationError(f"Service '{service_name}' is not available") from e


# Simple decorators without conflicts
def log_requests(func):
    """Decorator to log request information."""
    def log_wrapper(*args, **kwargs):
        logger.debug(f"Request: {request.method} {request.path}")
        return func(*args, **kwargs)
    log_wrapper.__name__ = f"{func.__name__}_logged"
    return log_wrapper


def handle_request_errors(func):
    """Decorator mapping application errors onto HTTP status codes."""
    def error_wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (RequestValidationError, ValidationError) as e:
            return create_error_response(str(e), 400, "VALIDATION_ERROR")
        except NotFoundError as e:
            return create_error_response(str(e), 404, "NOT_FOUND")
        except DuplicateAssignmentError as e:
            return create_error_response(str(e), 409, "DUPLICATE_ASSIGNMENT")
        except PartialRolloverError as e:
            logger.error(f"Partial rollover in {func.__name__}: {e}")
            return create_error_response(str(e), 500, "PARTIAL_ROLLOVER")
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            return create_error_response("An unexpected error occurred", 500, "INTERNAL_ERROR")
    error_wrapper.__name__ = f"{func.__name__}_error_handled"
    return error_wrapper
