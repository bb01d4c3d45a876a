"""
Gull Licensing API
Flask Application Factory.

Usage:
    from gulls_api import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate

from gulls_api.config import config
from gulls_api.models import db
from gulls_api.middleware.logging_config import configure_logging

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from gulls_api.models import licence as _licence_models        # noqa: F401
    from gulls_api.models import catalog as _catalog_models        # noqa: F401
    from gulls_api.models import amendment as _amendment_models    # noqa: F401
    from gulls_api.models import returns as _returns_models        # noqa: F401
    from gulls_api.models import scheduling as _scheduling_models  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///") and ":memory:" not in db_uri:
        os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        try:
            db.create_all()
            app.logger.info("db.create_all() completed successfully")
        except Exception as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("run-job")
    @click.argument("job_name")
    def run_job_cmd(job_name):
        """Run a scheduled job now, e.g. ``flask run-job return_reminder``."""
        from gulls_api.services.scheduler_service import SchedulerService
        SchedulerService.ensure_jobs_registered()
        result = SchedulerService.run_job(job_name)
        logger.info("Job %s finished: %s", job_name, result.get("status"))
        click.echo(result)

    @app.cli.command("seed-catalog")
    @click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
    def seed_catalog_cmd(json_path):
        """Load licence conditions and advisories from a JSON file."""
        from gulls_api.services.catalog_service import seed_catalog_file
        counts = seed_catalog_file(json_path)
        db.session.commit()
        click.echo(f"Catalog seeded: {counts['inserted']} inserted, {counts['updated']} updated")

    # ── Health check ─────────────────────────────────────────────────────
    @app.route(f"{app.config['PATH_PREFIX']}/health")
    def health():
        return {"status": "ok", "app": "Gull Licensing API"}

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        from flask import request
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(500)
    def server_error(e):
        logging.getLogger(__name__).error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error"}, 500

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    # ── Scheduler initialization (import jobs to register them) ──────────
    import importlib
    importlib.import_module("gulls_api.services.scheduled_jobs")  # registers @register_job handlers
    from gulls_api.services.scheduler_service import SchedulerService as _SchedulerSvc
    _SchedulerSvc.init_app(app)

    return app
