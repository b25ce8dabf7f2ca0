# backend/starweb/__init__.py
import logging
import time

from flask import Flask, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger("starweb").setLevel(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


def wait_for_database(app: Flask) -> None:
    """
    Block until the database answers SELECT 1.

    Retries once per second and gives up after CONNECTION_WAIT_SECONDS,
    re-raising the last connection error.
    """
    deadline = time.monotonic() + app.config.get("CONNECTION_WAIT_SECONDS", 30)
    attempt = 0
    with app.app_context():
        while True:
            attempt += 1
            try:
                db.session.execute(text("SELECT 1"))
                db.session.rollback()
                if attempt > 1:
                    app.logger.info("Database reachable after %s attempts", attempt)
                return
            except OperationalError:
                db.session.rollback()
                if time.monotonic() >= deadline:
                    app.logger.error("Database still unreachable after %s attempts; giving up", attempt)
                    raise
                app.logger.warning("Database not reachable (attempt %s); retrying", attempt)
                time.sleep(1)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Operation failed"}), 500


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    from .services import snapshot_service
    snapshot_service.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp
    from .routes.settings import settings_bp
    from .routes.snapshots import snapshots_bp
    from .routes.reference import reference_bp
    from .routes.fleet import fleet_bp
    from .routes.purchase_orders import purchase_orders_bp
    from .routes.reports import reports_bp
    from .routes.hr import hr_bp
    from .routes.finance import finance_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(snapshots_bp)
    app.register_blueprint(reference_bp)
    app.register_blueprint(fleet_bp)
    app.register_blueprint(purchase_orders_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(hr_bp)
    app.register_blueprint(finance_bp)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:9002",
            "http://127.0.0.1:9002",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
