"""
Application settings.

Values are read from the environment (optionally populated from a `.env` file
in the project root). Required credentials raise a RuntimeError naming the
missing variable so misconfiguration fails loudly at first use, not at import.

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: Supabase project URL and server-side key
- REDIS_URL: Redis connection URL used for invoice deduplication
- TINYBIRD_API_URL / TINYBIRD_API_KEY: analytics event store
- STRIPE_INTEGRATION_WEBHOOK_SECRET: signing secret for Stripe deliveries
- SMTP_HOST / SMTP_PORT / SMTP_USER / SMTP_PASSWORD / EMAIL_FROM: partner emails
- WEBHOOK_TIMEOUT_SECONDS: timeout for outbound workspace webhooks
- LOG_LEVEL: root log level
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"


def _require(name: str, description: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"Missing environment variable: {name}. "
            f"Set {name} to {description}."
        )
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str
    supabase_key: str
    tinybird_api_key: str
    stripe_webhook_secret: str

    redis_url: str = "redis://localhost:6379/0"
    tinybird_api_url: str = "https://api.tinybird.co"

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_from: str = "notifications@dub.co"

    webhook_timeout_seconds: float = 10.0
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load settings from the environment once per process."""

    load_dotenv(dotenv_path=env_path)

    return Settings(
        supabase_url=_require("SUPABASE_URL", "your Supabase project URL"),
        supabase_key=_require("SUPABASE_KEY", "your Supabase API key"),
        tinybird_api_key=_require("TINYBIRD_API_KEY", "your Tinybird API token"),
        stripe_webhook_secret=_require(
            "STRIPE_INTEGRATION_WEBHOOK_SECRET", "the Stripe webhook signing secret"
        ),
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        tinybird_api_url=os.getenv("TINYBIRD_API_URL", "https://api.tinybird.co"),
        smtp_host=os.getenv("SMTP_HOST", "localhost"),
        smtp_port=int(os.getenv("SMTP_PORT", "587")),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        email_from=os.getenv("EMAIL_FROM", "notifications@dub.co"),
        webhook_timeout_seconds=float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "10")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


__all__ = ["Settings", "load_settings"]
