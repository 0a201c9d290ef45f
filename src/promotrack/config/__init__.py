# src/promotrack/config/__init__.py
"""
Configuration module for the promo tracking application.
"""

from .settings import Settings, get_settings

__all__ = ['Settings', 'get_settings']
