"""
Vibe Check configuration. All environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")
    DB_POOL_MIN_SIZE: int = int(os.environ.get("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", "20"))
    DB_COMMAND_TIMEOUT_SECONDS: float = float(os.environ.get("DB_COMMAND_TIMEOUT_SECONDS", "60"))

    # Email (Resend)
    RESEND_API_KEY: str = os.environ.get("RESEND_API_KEY", "")
    EMAIL_FROM: str = os.environ.get("EMAIL_FROM", "Vibe Check <no-reply@vibecheckapps.com>")

    # Auth
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    JWT_ALGORITHM: str = "HS256"

    # Guardian verification codes
    GUARDIAN_CODE_EXPIRY_MINUTES: int = int(os.environ.get("GUARDIAN_CODE_EXPIRY_MINUTES", "15"))
    GUARDIAN_DAILY_ATTEMPT_LIMIT: int = int(os.environ.get("GUARDIAN_DAILY_ATTEMPT_LIMIT", "5"))
    GUARDIAN_ATTEMPT_WINDOW_HOURS: int = int(os.environ.get("GUARDIAN_ATTEMPT_WINDOW_HOURS", "24"))
    GUARDIAN_RESEND_COOLDOWN_SECONDS: int = int(os.environ.get("GUARDIAN_RESEND_COOLDOWN_SECONDS", "60"))

    @property
    def GUARDIAN_CODE_SECRET(self) -> str:
        # HMAC key for stored code digests
        return os.environ.get("GUARDIAN_CODE_SECRET") or self.JWT_SECRET

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def CORS_ORIGINS(self) -> list[str]:
        raw = os.environ.get("CORS_ORIGINS", "*")
        return [origin.strip() for origin in raw.split(",") if origin.strip()]


# Singleton instance
settings = Settings()

# Validate required settings (skip in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
if not settings.JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is required")

if not _testing:
    if not settings.RESEND_API_KEY:
        raise RuntimeError("RESEND_API_KEY environment variable is required")
