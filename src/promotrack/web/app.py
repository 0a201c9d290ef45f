# src/promotrack/web/app.py
"""
Flask application factory with dependency injection.
All route handlers live in blueprints; this module only configures the app.
"""

import logging
from typing import Optional

from flask import Flask

from ..config.settings import Settings, get_settings
from ..services.container import ServiceCreationError, reset_container
from ..services.factory import initialize_services
from .blueprints import get_blueprint_info, initialize_blueprints
from .utils.request_helpers import create_json_response

logger = logging.getLogger(__name__)


def create_app(environment: Optional[str] = None, settings: Optional[Settings] = None) -> Flask:
    settings = settings or get_settings(environment)

    # Each app gets a freshly wired container.
    reset_container()
    try:
        initialize_services(settings)
        logger.info("Service container initialized successfully")
    except ServiceCreationError as e:
        logger.error(f"Failed to initialize services: {e}")
        raise

    app = Flask(__name__)
    app.config.update({
        'SECRET_KEY': settings.web.secret_key,
        'DEBUG': settings.web.debug,
        'ENVIRONMENT': settings.environment,
        'PROJECT_ROOT': str(settings.project_root),
        'DB_PATH': settings.database.db_path,
        'STORE_BACKEND': settings.store.backend,
    })
    if settings.environment == "test":
        app.config['TESTING'] = True

    try:
        initialize_blueprints(app)
        logger.info("Blueprints initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize blueprints: {e}")
        raise

    @app.route('/info')
    def app_info():
        """Application information endpoint."""
        return create_json_response({
            'app_name': 'PromoTrack',
            'environment': settings.environment,
            'debug': settings.web.debug,
            'blueprints': get_blueprint_info(),
        })

    @app.errorhandler(404)
    def not_found(_error):
        return create_json_response({'success': False, 'error': 'Not found', 'status': 404}, 404)

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return create_json_response({'success': False, 'error': 'Method not allowed', 'status': 405}, 405)

    logger.info(f"Flask app created for environment: {settings.environment}")
    return app


def main() -> None:
    """Run the development server."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    settings = get_settings()
    app = create_app(settings=settings)
    app.run(host=settings.web.host, port=settings.web.port, debug=settings.web.debug)


if __name__ == "__main__":
    main()
