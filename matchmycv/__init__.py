# matchmycv/__init__.py
from __future__ import annotations
import logging
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .extensions import get_db, init_db, limiter, login_manager
from .models import User
from .routes import register_routes
from .services.storage import init_storage


def create_app(env: str | None = None, overrides: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(get_config(env))
    if overrides:
        app.config.update(overrides)
    app.secret_key = app.config["SECRET_KEY"]
    # room for multipart overhead; the upload route enforces the file size itself
    app.config["MAX_CONTENT_LENGTH"] = app.config["MAX_UPLOAD_BYTES"] + 1024 * 1024

    # CORS & logging
    CORS(app, origins=app.config["CORS_ORIGINS"] or "*", supports_credentials=True)
    logging.basicConfig(level=getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Database, storage, request limits. The AI provider is built lazily on first use.
    init_db(app)
    app.config["STORAGE"] = init_storage(app.config)
    app.config["RATELIMIT_ENABLED"] = bool(app.config["RATE_LIMIT_ENABLED"])
    limiter.init_app(app)
    app.config.setdefault("AI_PROVIDER_INSTANCE", None)

    # ---------- Flask-Login ----------
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str):
        if not user_id:
            return None
        return get_db().get(User, user_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify(error="unauthorized", message="Login required"), 401

    register_error_handlers(app)

    # ---------- Blueprints ----------
    register_routes(app)

    @app.get("/healthz")
    def health():
        return {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}

    return app
