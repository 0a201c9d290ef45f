# src/promotrack/models/__init__.py
"""
Data models for the promo tracking system.
"""

from .entities import (
    Account,
    AccountNote,
    ActivityEntry,
    Actor,
    Assignment,
    Promo,
    Quarter,
    Rep,
    SideEffectResult,
    Transaction,
    format_territories,
    parse_territories,
)
from .enums import (
    ActivityType,
    NotificationStatus,
    NotificationType,
    PaceStatus,
    RolloverState,
)

__all__ = [
    'Account',
    'AccountNote',
    'ActivityEntry',
    'Actor',
    'Assignment',
    'Promo',
    'Quarter',
    'Rep',
    'SideEffectResult',
    'Transaction',
    'format_territories',
    'parse_territories',
    'ActivityType',
    'NotificationStatus',
    'NotificationType',
    'PaceStatus',
    'RolloverState',
]
