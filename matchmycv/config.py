# matchmycv/config.py
from __future__ import annotations
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "1") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key")
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = _flag("SESSION_COOKIE_SECURE", "1")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    APP_URL = os.environ.get("APP_URL", "http://localhost:5000")

    # Database
    DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///matchmycv.db")

    # AI provider ("openai" or "anthropic")
    AI_PROVIDER = os.environ.get("AI_PROVIDER", "openai")
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL") or None
    LLM_MODEL = os.environ.get("LLM_MODEL", "gpt-4o-mini")
    EMBEDDINGS_MODEL = os.environ.get("EMBEDDINGS_MODEL", "text-embedding-3-small")
    ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL = os.environ.get("ANTHROPIC_MODEL", "claude-3-haiku-20240307")

    # Storage: Supabase bucket when all three are set, local disk otherwise
    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY", "")
    STORAGE_BUCKET = os.environ.get("STORAGE_BUCKET", "")
    UPLOAD_DIR = os.environ.get("UPLOAD_DIR", "uploads")
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # Rate limiting (Flask-Limiter; in-memory per process unless a storage URI is given)
    RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED", "1")
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_HEADERS_ENABLED = True

    # PDF export: "auto" tries LibreOffice first, then WeasyPrint
    PDF_ENGINE = os.environ.get("PDF_ENGINE", "auto").lower()
    SOFFICE_TIMEOUT = int(os.environ.get("SOFFICE_TIMEOUT", "60"))

    # Stripe
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_PRICE_ID_MONTHLY = os.environ.get("STRIPE_PRICE_ID_MONTHLY", "")
    STRIPE_PRICE_ID_YEARLY = os.environ.get("STRIPE_PRICE_ID_YEARLY", "")

    # CORS origins if you need them (comma-separated)
    CORS_ORIGINS = [s.strip() for s in os.environ.get("CORS_ORIGINS", "").split(",") if s.strip()]


class DevConfig(Config):
    DEBUG = True
    SESSION_COOKIE_SECURE = False


class ProdConfig(Config):
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-key"
    SESSION_COOKIE_SECURE = False
    DATABASE_URL = "sqlite://"
    AI_PROVIDER = "openai"
    PDF_ENGINE = "weasyprint"
    SUPABASE_URL = ""
    SUPABASE_SERVICE_KEY = ""
    STORAGE_BUCKET = ""
    RATE_LIMIT_ENABLED = True


def get_config(env: str | None = None):
    """Resolve config by env string or environment variables."""
    env = (env or os.environ.get("MATCHMYCV_ENV") or os.environ.get("FLASK_ENV") or "production").lower()
    if env in ("dev", "development"):
        return DevConfig
    if env in ("test", "testing"):
        return TestConfig
    return ProdConfig
