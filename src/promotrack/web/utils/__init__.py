# src/promotrack/web/utils/__init__.py
"""
Web utilities for Flask routes and request handling.
"""

from .request_helpers import (
    RequestValidationError,
    create_error_response,
    create_json_response,
    create_success_response,
    get_bool_field,
    get_int_field,
    get_json_body,
    handle_request_errors,
    log_requests,
    require_fields,
    resolve_actor,
    safe_get_service,
)

__all__ = [
    "RequestValidationError",
    "create_error_response",
    "create_json_response",
    "create_success_response",
    "get_bool_field",
    "get_int_field",
    "get_json_body",
    "handle_request_errors",
    "log_requests",
    "require_fields",
    "resolve_actor",
    "safe_get_service",
]
