"""
Routes package for the back office
"""

from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.routes")


def init_app(app):
    """Register the JSON API blueprint with the Flask app"""
    logger.debug("Initializing route blueprints")

    from backoffice import csrf
    from .api import api_bp

    # The JSON API authenticates with the session cookie and is called by scripts
    csrf.exempt(api_bp)
    app.register_blueprint(api_bp)

    logger.info("Registered API blueprint")
