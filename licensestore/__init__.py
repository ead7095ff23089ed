# --- licensestore/__init__.py ---
import logging

from flask import Flask
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import StoreError
from .extensions import db, jwt, cors, migrate
from .logs import configure_logging
from .utils.api import ok, err

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    @app.errorhandler(StoreError)
    def handle_store_error(e):
        if e.status_code >= 500:
            logger.error("%s: %s", e.kind, e.message)
        return err(e.message, e.status_code, e.as_data())

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return err(e.description if e.code != 405 else "Method not allowed", e.code,
                   {"kind": "http-error"})


def create_app(config_overrides=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    app.config['MAX_CONTENT_LENGTH'] = 1 * 1024 * 1024
    Config.init_app(app)
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/*": {"origins": "*"}})
    migrate.init_app(app, db)

    # Register blueprints
    from .order import bp as order_bp; app.register_blueprint(order_bp)
    from .invoice import bp as invoice_bp; app.register_blueprint(invoice_bp)
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .admin import bp as admin_bp; app.register_blueprint(admin_bp)

    register_error_handlers(app)

    from .services.backends import close_http_session
    app.teardown_appcontext(close_http_session)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return ok("API running")

    with app.app_context():
        db.create_all()

    logger.info("record store: %s", "pocketbase" if app.config.get("POCKETBASE_URL") else "sql")
    return app
