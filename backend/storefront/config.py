# backend/storefront/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Record keys inside the keyed record store
    ORDERS_STORAGE_KEY = os.environ.get("ORDERS_STORAGE_KEY", "storefront.orders")
    AUTO_CONFIRM_STORAGE_KEY = "storefront.auto_confirm_orders"

    # Used only until an operator stores an explicit policy
    AUTO_CONFIRM_ORDERS_DEFAULT = _env_flag("AUTO_CONFIRM_ORDERS", True)

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))

    ADMIN_EMAILS = [
        email.strip().lower()
        for email in os.environ.get("ADMIN_EMAILS", "admin@storefront.local").split(",")
        if email.strip()
    ]

    # Development sign-in endpoint standing in for the external auth provider.
    # Off unless explicitly enabled: it trusts whatever email the client posts.
    SESSION_LOGIN_ENABLED = _env_flag("SESSION_LOGIN_ENABLED", False)

    CONCURRENCY_RETRY_ATTEMPTS = 3
