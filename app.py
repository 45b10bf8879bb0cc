# app.py
from __future__ import annotations

import logging
import os

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_cors import CORS

from config import Config
from db import db, migrate
from errors import ApiError, ErrorCode

# Ensure models are imported so Flask-Migrate sees them
from models.user import Account
from models.note import Note

# Blueprints
from routes.auth import auth_bp
from routes.notes import notes_bp

# Components
from services.accounts import AccountStore
from services.notify import EmailNotifier, Notifier
from services.otp import ChallengeEngine
from services.session import SessionIssuer


def _error_body(error: str, message: str) -> dict:
    return {"success": False, "error": error, "message": message}


def create_app(config_object=Config, *, notifier: Notifier | None = None) -> Flask:
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host) for correct URL generation
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    # Load config + init extensions
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")), logging.INFO))

    CORS(app, resources={r"/*": {"origins": app.config["CORS_ORIGINS"]}})
    db.init_app(app)
    migrate.init_app(app, db)

    # Components built once from config and shared by every request
    accounts = AccountStore()
    app.extensions["accounts"] = accounts
    app.extensions["otp"] = ChallengeEngine(
        accounts,
        pepper=app.config["OTP_PEPPER"],
        ttl_minutes=app.config["OTP_TTL_MINUTES"],
        code_length=app.config["OTP_LENGTH"],
    )
    app.extensions["sessions"] = SessionIssuer(
        app.config["JWT_SECRET"],
        ttl_minutes=app.config["SESSION_TTL_MINUTES"],
        algorithm=app.config["JWT_ALGORITHM"],
    )
    app.extensions["notifier"] = notifier or EmailNotifier.from_config(app.config)

    with app.app_context():
        # Touch models so Alembic/Flask-Migrate registers them
        _ = (Account, Note)

    # Health check
    @app.route("/")
    def health_check():
        return jsonify(status="ok"), 200

    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(_error_body("NOT_FOUND", "Not Found") | {"path": request.path}), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(_error_body(e.name.upper().replace(" ", "_"), e.description or e.name)), e.code
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify(_error_body(ErrorCode.INTERNAL.name, ErrorCode.INTERNAL.default_message)), 500

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(notes_bp)

    # CLI: create tables without running migrations (dev / first boot)
    @app.cli.command("init-db")
    def init_db_cmd():
        db.create_all()
        print("Database tables created.")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=bool(os.environ.get("FLASK_DEBUG", "")),
    )
