"""
PromoTrack: sales promo progress tracking, pace, quarter rollover and
notification core.
"""

__version__ = "1.0.0"
