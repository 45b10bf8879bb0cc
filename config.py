# config.py
import os

from dotenv import load_dotenv

# Local/dev convenience; real deployments set the environment directly
load_dotenv()


def _to_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

def _to_int(val: str | None, default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


class Config:
    # ── Core ─────────────────────────────────────────────────────────────────
    DEBUG = _to_bool(os.environ.get("DEBUG") or os.environ.get("FLASK_DEBUG"), False)
    TESTING = False
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret")  # ← override in prod!
    APP_NAME = os.environ.get("APP_NAME", "notes-app")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///notes_app.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
    }

    # ── Auth / sessions ─────────────────────────────────────────────────────
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_ALGORITHM = "HS256"
    SESSION_TTL_MINUTES = _to_int(os.environ.get("SESSION_TTL_MINUTES"), 60)

    # ── OTP ─────────────────────────────────────────────────────────────────
    OTP_TTL_MINUTES = _to_int(os.environ.get("OTP_TTL_MINUTES"), 10)
    OTP_LENGTH = _to_int(os.environ.get("OTP_LENGTH"), 6)
    OTP_PEPPER = os.environ.get("OTP_PEPPER", "change-me")  # set long random in prod

    # ── Mail (SMTP) ─────────────────────────────────────────────────────────
    MAIL_ENABLED = _to_bool(os.environ.get("MAIL_ENABLED"), True)
    SMTP_HOST = os.environ.get("SMTP_HOST", "smtp-relay.brevo.com")
    SMTP_PORT = _to_int(os.environ.get("SMTP_PORT"), 587)
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASS = os.environ.get("SMTP_PASS")
    SMTP_TIMEOUT = _to_int(os.environ.get("SMTP_TIMEOUT"), 20)
    MAIL_FROM = os.environ.get("MAIL_FROM") or SMTP_USER or "no-reply@example.com"


class ProductionConfig(Config):
    DEBUG = False
    SECRET_KEY = os.environ.get("SECRET_KEY")
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = "DEBUG"


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-jwt-secret"
    OTP_PEPPER = "test-pepper"
    MAIL_ENABLED = False
