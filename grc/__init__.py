"""
GRC Risk Workflow Service
Flask Application Factory.

Usage:
    from grc import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from grc.config import config
from grc.middleware.logging_config import configure_logging
from grc.middleware.rate_limiter import init_rate_limits
from grc.middleware.timing import init_request_timing
from grc.models import db
from grc.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # per-blueprint limits only
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    cfg = config[config_name]
    # ProductionConfig validates required env vars on instantiation
    app.config.from_object(cfg() if config_name == "production" else cfg)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing + request ids ─────────────────────────────────────
    init_request_timing(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic can detect them ─────────────────────
    from grc.models import risk as _risk_models            # noqa: F401
    from grc.models import treatment as _treatment_models  # noqa: F401
    from grc.models import workshop as _workshop_models    # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///") and ":memory:" not in db_uri:
        os.makedirs(os.path.dirname(db_uri[len("sqlite:///"):]), exist_ok=True)

    if config_name != "production" or os.getenv("AUTO_CREATE_TABLES") == "1":
        with app.app_context():
            db.create_all()
            logger.debug("db.create_all() completed")

    # ── Blueprints + error handlers ──────────────────────────────────────
    from grc.blueprints import register_blueprints
    register_blueprints(app)
    register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("next-risk-id")
    def next_risk_id_cmd():
        """Print the next free RISK-### id."""
        from grc.models.risk import next_risk_id
        print(next_risk_id())

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
