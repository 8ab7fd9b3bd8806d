"""
Flask Application Factory - HDB Resale Analytics API

Read-only analytics over HDB resale transactions. All aggregation runs as
SQL GROUP BY queries through SQLAlchemy; ordering-dependent computations
(deltas, ranks, running totals) run in Python over the grouped rows.

The store is populated by a separate import job; this app never writes
transactions.
"""

import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate

from models.database import db

# Initialize Flask-Migrate (will be initialized in create_app)
migrate = Migrate()


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    logging.getLogger().setLevel(level)


def _check_schema() -> None:
    """
    Compare the live schema with the models.

    Missing required columns on existing tables abort startup; missing tables
    only warn (a fresh production database is migrated separately).
    """
    from services.schema_check import has_critical_drift, run_schema_check

    report = run_schema_check()
    if report['is_valid']:
        print("   ✓ Schema check passed")
        return

    if has_critical_drift(report):
        critical = [c for c in report['missing_columns'] if c['severity'] == 'critical']
        print("\n" + "=" * 60)
        print("FATAL: SCHEMA DRIFT DETECTED")
        print("=" * 60)
        for col in critical:
            print(f"   - {col['table']}.{col['column']}")
        print("\nTO FIX: run `flask db upgrade` before starting the app")
        print("=" * 60 + "\n")
        raise RuntimeError(
            f"Schema drift: {len(critical)} missing critical columns. "
            "Run migrations before starting the app."
        )

    print(f"   ⚠️  Schema check: {report['summary']}")


def create_app(config_object=None):
    """
    Build the Flask app.

    Args:
        config_object: Config class (or mapping) applied instead of the
            environment-driven config.Config, e.g. a test config.
    """
    app = Flask(__name__)
    if config_object is None:
        from config import Config
        config_object = Config
    if isinstance(config_object, dict):
        app.config.update(config_object)
    else:
        app.config.from_object(config_object)

    _configure_logging(app)

    # Initialize CORS - allow all origins, read-only public API
    CORS(app,
         resources={r"/api/*": {"origins": "*"}},
         methods=["GET", "POST", "OPTIONS"],
         allow_headers=["Content-Type", "X-Request-ID"],
         expose_headers=["X-Request-ID", "X-DB-Time-Ms", "X-Query-Count"],
         supports_credentials=False,
         send_wildcard=True)

    # === API MIDDLEWARE ===
    from api.middleware import (
        setup_error_handlers,
        setup_query_timing_middleware,
        setup_request_id_middleware,
    )
    setup_request_id_middleware(app)
    setup_query_timing_middleware(app)
    setup_error_handlers(app)

    # Initialize SQLAlchemy
    db.init_app(app)

    # Initialize Flask-Migrate for database migrations
    migrate.init_app(app, db)

    from services.analytics_cache import init_analytics_cache
    cache = init_analytics_cache(app)
    if cache is not None:
        print("   ✓ Analytics cache enabled")

    with app.app_context():
        # Import all models before create_all to ensure tables are created
        import models  # noqa: F401

        env = (os.environ.get("ENV") or os.environ.get("FLASK_ENV") or "").lower()
        is_prod = env in {"prod", "production"}
        if app.config.get("TESTING") or not is_prod:
            db.create_all()
            print("✓ Database initialized")
        else:
            print("✓ Database ready (schema creation disabled in production)")

        _check_schema()

    from routes.analytics import analytics_bp
    app.register_blueprint(analytics_bp, url_prefix='/api/analytics')
    print("   ✓ Analytics routes registered")

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "name": "HDB Resale Analytics API",
            "status": "running",
            "health": "/api/analytics/health",
        })

    return app


def run_app():
    """Main entry point for local development - starts server with Flask's dev server."""
    print("=" * 60)
    print("Starting Flask API - HDB Resale Analytics")
    print("=" * 60)

    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(debug=app.config.get("DEBUG", False), host="0.0.0.0", port=port)


if __name__ == "__main__":
    run_app()
