"""
Environment configuration for the practice service.

Values that tests override per-run (database URL, provider secrets) are read
through small accessor functions so they see the environment at call time.
"""

import os

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

PRACTICE_ENV = os.getenv("PRACTICE_ENV", "development")

# Base URL used to build checkout success/cancel redirects
APP_URL = os.getenv("APP_URL", "http://localhost:5173")

STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com/v1")

# Maximum age of a signed webhook in seconds (5 minutes)
WEBHOOK_TOLERANCE_SECONDS = int(os.getenv("WEBHOOK_TOLERANCE_SECONDS", "300"))


def database_url() -> str:
    """Database URL from environment, defaulting to a local SQLite file."""
    url = os.getenv("DATABASE_URL", "sqlite:///./practice.db")
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return url


def stripe_secret_key() -> str | None:
    return os.getenv("STRIPE_SECRET_KEY")


def stripe_webhook_secret() -> str | None:
    return os.getenv("STRIPE_WEBHOOK_SECRET")


def practice_api_url() -> str:
    """Base URL of the practice HTTP API used by the client-side store."""
    return os.getenv("PRACTICE_API_URL", "http://localhost:8000")


def docs_enabled() -> bool:
    return PRACTICE_ENV != "production"
