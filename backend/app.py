"""Flask application factory for the daily report backend."""
from flask import Flask
import logging
from werkzeug.exceptions import RequestEntityTooLarge
from .config_manager import ConfigManager, resolve_database_uri
from .models import db
from .blueprints import daily_reports, health
from .cli import init_db_command, create_organisation_command, create_site_command, check_orphans_command
from .logging_config import setup_logging
from .utils import api_error

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    """Flask application factory for the daily report backend.

    Creates and configures a Flask application instance with:
    - Settings loaded from the environment (ConfigManager)
    - SQLAlchemy database integration
    - Blueprint registration for API endpoints
    - CLI command registration

    Args:
        test_config (dict, optional): Configuration overrides for testing;
            a 'SETTINGS' entry replaces the environment-derived ConfigManager

    Returns:
        Flask: Configured Flask application instance

    Raises:
        RuntimeError: If DATABASE_URL is missing outside the build phase
    """
    test_config = dict(test_config or {})
    settings = test_config.pop('SETTINGS', None) or ConfigManager()

    # Setup logging first
    setup_logging(settings.log_level)
    logger.info("Starting Flask application initialization")

    app = Flask(__name__, instance_relative_config=True)
    app.config['SETTINGS'] = settings
    app.config['MAX_CONTENT_LENGTH'] = settings.max_content_length
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    if test_config:
        app.config.from_mapping(test_config)
        logger.info("Loaded test configuration")
    elif app.config.from_pyfile('config.py', silent=True):
        logger.info("Loaded configuration from instance/config.py")

    # Only resolve from the environment if not already set (e.g., by tests)
    if 'SQLALCHEMY_DATABASE_URI' not in app.config:
        app.config['SQLALCHEMY_DATABASE_URI'] = resolve_database_uri(settings)
    logger.info(f"Environment: {settings.app_env}, cleanliness mode: {settings.cleanliness_mode.value}, "
                f"site lookup: {settings.site_lookup_enabled}")

    db.init_app(app)
    logger.info("SQLAlchemy database initialized")

    app.register_blueprint(daily_reports.bp)
    app.register_blueprint(health.bp)
    logger.info("API blueprints registered: daily_reports, health")

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_too_large(e):
        return api_error('Upload too large', 413)

    app.cli.add_command(init_db_command)
    app.cli.add_command(create_organisation_command)
    app.cli.add_command(create_site_command)
    app.cli.add_command(check_orphans_command)
    logger.info("CLI commands registered: init-db, create-organisation, create-site, check-orphans")

    logger.info("Flask application initialization completed successfully")
    return app

