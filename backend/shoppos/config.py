# backend/shoppos/config.py
from __future__ import annotations
import os


def _csv(value: str) -> set[str]:
    return {part.strip() for part in value.split(",") if part.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shoppos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shoppos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Reports bucket transactions by calendar day in this IANA timezone
    REPORT_TIMEZONE = os.environ.get("REPORT_TIMEZONE", "UTC")
    REPORT_TOP_N = int(os.environ.get("REPORT_TOP_N", "10"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    CORS_ALLOWED_ORIGINS = _csv(
        os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        )
    )
