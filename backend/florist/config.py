# backend/florist/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # "development" relaxes the cron secret check when CRON_SECRET is unset
    ENV = os.environ.get("ENV", "production").lower()
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///florist.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Shared bearer tokens: admin dashboard API and the external cron trigger
    ADMIN_API_TOKEN = os.environ.get("ADMIN_API_TOKEN")
    CRON_SECRET = os.environ.get("CRON_SECRET")

    # Web Push (VAPID) identity, read once at startup
    VAPID_PUBLIC_KEY = os.environ.get("VAPID_PUBLIC_KEY")
    VAPID_PRIVATE_KEY = os.environ.get("VAPID_PRIVATE_KEY")
    VAPID_CONTACT = os.environ.get("VAPID_CONTACT", "mailto:admin@florist.local")
    PUSH_MAX_WORKERS = _int_env("PUSH_MAX_WORKERS", 10)
    PUSH_TTL_SECONDS = _int_env("PUSH_TTL_SECONDS", 86400)
    PUSH_TIMEOUT_SECONDS = _int_env("PUSH_TIMEOUT_SECONDS", 10)

    # Calendar dates ("today", reservation dates) are evaluated in this zone
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", "Asia/Seoul")

    # Operator alerts for unexpected errors
    ERROR_WEBHOOK_URL = os.environ.get("ERROR_WEBHOOK_URL")
    ERROR_DEDUP_WINDOW_SECONDS = _int_env("ERROR_DEDUP_WINDOW_SECONDS", 300)
