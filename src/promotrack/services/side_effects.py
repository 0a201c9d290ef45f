"""
Fire-and-forget helpers for secondary writes.

Secondary paths (activity log, notification log, notification dispatch) must
never fail the primary operation. They run through ``best_effort`` which
returns a SideEffectResult and logs the failure instead of raising.
"""

import logging
from typing import Any, Callable

from ..models.entities import SideEffectResult

logger = logging.getLogger(__name__)


def best_effort(description: str, operation: Callable[..., Any], *args, **kwargs) -> SideEffectResult:
    """Run ``operation`` and report its outcome without propagating failures."""
    try:
        result = operation(*args, **kwargs)
    except Exception as e:
        logger.warning(f"{description} failed: {e}", exc_info=logger.isEnabledFor(logging.DEBUG))
        return SideEffectResult(ok=False, error=str(e))

    if isinstance(result, SideEffectResult):
        return result
    return SideEffectResult(ok=True, record=result if isinstance(result, dict) else None)
