"""Core services for promo progress, assignments, rollover and notifications."""
