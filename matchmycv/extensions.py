# matchmycv/extensions.py
from __future__ import annotations
from flask import Flask, current_app
from flask_limiter import Limiter
from flask_login import LoginManager
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base
from .security.client import client_ip_key, user_or_ip_key

# A single LoginManager instance you can init on the app
login_manager = LoginManager()

# Per-route request limits; storage comes from RATELIMIT_STORAGE_URI
limiter = Limiter(key_func=client_ip_key)

ANALYSIS_LIMIT = "50/hour"
EDIT_LIMIT = "100/hour"
EXPORT_LIMIT = "30/hour"
AUTH_LIMIT = "20 per 15 minutes"

# register and login draw from one bucket per IP
limit_auth = limiter.shared_limit(AUTH_LIMIT, scope="auth", key_func=client_ip_key)


class Database:
    """Engine plus a scoped session, one pair per app."""

    def __init__(self, url: str, echo: bool = False):
        kwargs = {}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # in-memory databases live on a single connection
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(url, echo=echo, future=True, **kwargs)
        self.session = scoped_session(
            sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        )

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)


def init_db(app: Flask) -> Database:
    db = Database(app.config["DATABASE_URL"])
    db.create_all()
    app.extensions["db"] = db

    @app.teardown_appcontext
    def _remove_session(exc=None):
        db.session.remove()

    return db


def get_db() -> Session:
    return current_app.extensions["db"].session
