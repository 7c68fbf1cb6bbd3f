# backend/billing/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/billing.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///billing.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "allow": stock may go negative silently
    # "warn": stock may go negative, a warning is logged
    STOCK_NEGATIVE_POLICY = os.environ.get("STOCK_NEGATIVE_POLICY", "allow")

    INVOICE_NUMBER_PREFIX = os.environ.get("INVOICE_NUMBER_PREFIX", "INV")

    # Retries on lock/deadlock failures before a settlement gives up
    SETTLEMENT_RETRY_ATTEMPTS = int(os.environ.get("SETTLEMENT_RETRY_ATTEMPTS", "3"))

    # Comma-separated browser origins allowed to call the API (POS frontend)
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]
