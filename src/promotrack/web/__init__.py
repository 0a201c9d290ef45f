"""
Flask web layer: app factory, blueprints and request helpers.
"""
