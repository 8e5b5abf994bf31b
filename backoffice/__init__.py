from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
from backoffice.utils.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://"  # Use Redis in production for distributed systems
)


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(test_config=None):
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("backoffice")
    logger.info("Initializing Flask application")

    base_dir = Path(__file__).parent.parent
    instance_dir = base_dir / 'instance'

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')

    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'backoffice.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # HTTPS/TLS Configuration
    app.config['ENABLE_HTTPS'] = _env_flag('ENABLE_HTTPS', 'True')
    app.config['FORCE_HTTPS_REDIRECT'] = _env_flag('FORCE_HTTPS_REDIRECT', 'True')

    # Session cookie security configuration
    app.config['SESSION_COOKIE_SECURE'] = _env_flag('SESSION_COOKIE_SECURE', 'True')
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['PERMANENT_SESSION_LIFETIME'] = int(os.environ.get('PERMANENT_SESSION_LIFETIME', '3600'))
    app.config['REMEMBER_COOKIE_SECURE'] = _env_flag('REMEMBER_COOKIE_SECURE', 'True')
    app.config['REMEMBER_COOKIE_HTTPONLY'] = True
    app.config['REMEMBER_COOKIE_DURATION'] = int(os.environ.get('REMEMBER_COOKIE_DURATION', '86400'))

    # Business rules
    app.config['QUOTE_DEFAULT_VALIDITY_DAYS'] = int(os.environ.get('QUOTE_DEFAULT_VALIDITY_DAYS', '30'))
    app.config['STOCK_ADJUST_MAX_RETRIES'] = int(os.environ.get('STOCK_ADJUST_MAX_RETRIES', '3'))
    app.config['ADMIN_USER_PASSWORD'] = os.environ.get('ADMIN_USER_PASSWORD')

    if test_config:
        app.config.update(test_config)

    # SECURITY: Require SECRET_KEY - no fallback
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    if app.config['ENABLE_HTTPS']:
        logger.info("HTTPS enforcement enabled")
    else:
        logger.warning("HTTPS enforcement DISABLED - Acceptable for development only!")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from backoffice.data import core, inventory, quotes, finance, payroll  # noqa: F401

    logger.debug("Models imported and registered")

    # Register blueprints
    from backoffice.auth import auth
    from backoffice.presentation.routes import init_app as init_routes
    from backoffice.cli import register_commands

    app.register_blueprint(auth)
    init_routes(app)
    register_commands(app)

    @app.before_request
    def enforce_https():
        """Redirect HTTP requests to HTTPS if HTTPS enforcement is enabled"""
        if app.config.get('ENABLE_HTTPS') and app.config.get('FORCE_HTTPS_REDIRECT'):
            from flask import request, redirect

            if not request.is_secure and not request.headers.get('X-Forwarded-Proto') == 'https':
                url = request.url.replace('http://', 'https://', 1)
                return redirect(url, code=301)

    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Content-Security-Policy'] = "default-src 'self'"
        if app.config.get('ENABLE_HTTPS'):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    logger.info("Flask application initialization complete")

    return app
