# backend/coffeeshop/config.py
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

DEFAULT_LOG_FORMAT = "%(asctime)s | %(name)-20s | %(levelname)-8s | %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite file next to the backend by default; point DATABASE_URL at Postgres in production
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///coffeeshop.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-jwt-secret-change-me")
    JWT_ISSUER = os.environ.get("JWT_ISSUER", "coffeeshop")
    JWT_EXPIRES_HOURS = int(os.environ.get("JWT_EXPIRES_HOURS", "24"))
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Comma-separated list, appended to the local frontend origin
    ALLOW_ORIGIN = os.environ.get("ALLOW_ORIGIN", "")

    REDIS_URL = os.environ.get("REDIS_URL")
    REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD")
    PRODUCT_CACHE_TTL = int(os.environ.get("PRODUCT_CACHE_TTL", "600"))

    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", str(BASE_DIR / "uploads"))
    MAX_UPLOAD_BYTES = 2 * 1024 * 1024
    # Whole request body (several images per product)
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024
    MAX_PAGE_LIMIT = 100

    SMTP_HOST = os.environ.get("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USERNAME = os.environ.get("SMTP_USERNAME")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
    MAIL_SENDER = os.environ.get("MAIL_SENDER", os.environ.get("SMTP_USERNAME", ""))
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND")
    OTP_TTL_SECONDS = int(os.environ.get("OTP_TTL_SECONDS", "120"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.environ.get("LOG_FORMAT", DEFAULT_LOG_FORMAT)
    LOG_DATEFMT = os.environ.get("LOG_DATEFMT", DEFAULT_LOG_DATEFMT)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    SECRET_KEY = "test"
    JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"
    BCRYPT_ROUNDS = 4
    REDIS_URL = None
    MAIL_SUPPRESS_SEND = True
    LOG_LEVEL = "WARNING"
