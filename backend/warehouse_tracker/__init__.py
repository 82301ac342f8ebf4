import os
from flask import Flask, jsonify
from sqlalchemy import text

from warehouse_tracker.config import Config
from warehouse_tracker.extensions import db, migrate, cors
from warehouse_tracker.segments.segment_warehouses import warehouses_bp
from warehouse_tracker.segments.segment_utilization import utilization_bp
from warehouse_tracker.segments.segment_cron import cron_bp


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    env = (app.config.get("ENV_NAME") or "dev").strip().lower()

    # Production safety checks
    if env in ("prod", "production"):
        secret = (app.config.get("SECRET_KEY") or "").strip()
        if not secret or secret == "dev-secret" or len(secret) < 16:
            raise RuntimeError("SECRET_KEY must be set and at least 16 chars in production")
        if not (os.getenv("DATABASE_URL") or "").strip() and not (os.getenv("SQLALCHEMY_DATABASE_URI") or "").strip():
            raise RuntimeError("DATABASE_URL (or SQLALCHEMY_DATABASE_URI) must be set in production")
        if not (app.config.get("CRON_SECRET_KEY") or "").strip():
            app.logger.warning("CRON_SECRET_KEY is not set; the daily utilization endpoint will reject every call")

    app.logger.setLevel(app.config.get("LOG_LEVEL") or "INFO")

    # Ensure instance dir exists for SQLite paths
    database_url = app.config["SQLALCHEMY_DATABASE_URI"]
    if database_url.startswith("sqlite://") and database_url != "sqlite:///:memory:":
        os.makedirs(app.config.get("INSTANCE_DIR") or app.instance_path, exist_ok=True)

    # CORS configuration
    cors_origins = (app.config.get("CORS_ORIGINS") or "").strip()
    if env in ("prod", "production"):
        origins = [o.strip() for o in cors_origins.split(",") if o.strip()]
    else:
        origins = ["*"] if not cors_origins else [o.strip() for o in cors_origins.split(",") if o.strip()]
    cors.init_app(app, resources={r"/api/*": {"origins": origins}})

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Register API routes
    app.register_blueprint(warehouses_bp)
    app.register_blueprint(utilization_bp)
    app.register_blueprint(cron_bp)

    # Health check
    @app.get("/api/health")
    def health():
        db_state = "ok"
        try:
            db.session.execute(text("SELECT 1"))
        except Exception:
            app.logger.exception("health check database query failed")
            db_state = "fail"
        return jsonify({
            "ok": True,
            "service": "warehouse-tracker",
            "env": env,
            "db": db_state,
        })

    @app.get("/api/version")
    def version():
        return jsonify({"ok": True, "alembic_head": _alembic_head()})

    return app


def _alembic_head() -> str:
    try:
        from alembic.config import Config as AlembicConfig
        from alembic.script import ScriptDirectory
        migrations_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "migrations"))
        cfg = AlembicConfig(os.path.join(migrations_dir, "alembic.ini"))
        cfg.set_main_option("script_location", migrations_dir)
        heads = ScriptDirectory.from_config(cfg).get_heads()
        return heads[0] if heads else "unknown"
    except Exception:
        return "unknown"
