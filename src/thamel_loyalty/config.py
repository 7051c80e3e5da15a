"""
Central configuration module for Thamel Loyalty
Reads and validates environment variables with strict checks for production
"""
import os
import sys
from typing import Optional, List

# Load environment variables from .env file if it exists (dev only)
from dotenv import load_dotenv

if os.getenv("ENV", "dev").lower() == "dev":
    load_dotenv()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        print(f"Invalid integer for {name}: {value!r}, using {default}", file=sys.stderr)
        return default


class Config:
    """Central configuration class with environment variable validation"""

    # Environment
    ENV: str = os.getenv("ENV", "dev").lower()

    # Required for all environments
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./thamel_loyalty.db")

    PORT: int = _int_env("PORT", 3001)

    # Credentials and session tokens
    VERIFICATION_CODE_EXPIRY_MINUTES: int = _int_env("VERIFICATION_CODE_EXPIRY_MINUTES", 10)
    HANDOFF_CODE_EXPIRY_MINUTES: int = _int_env("HANDOFF_CODE_EXPIRY_MINUTES", 5)
    ACCESS_TOKEN_EXPIRE_DAYS: int = _int_env("ACCESS_TOKEN_EXPIRE_DAYS", 7)
    BCRYPT_ROUNDS: int = _int_env("BCRYPT_ROUNDS", 12)

    # Staff endpoints are guarded by a shared secret sent as X-Admin-Secret
    ADMIN_SECRET: Optional[str] = os.getenv("ADMIN_SECRET")

    # Email (optional - dev provider logs instead of sending)
    SMTP_HOST: Optional[str] = os.getenv("SMTP_HOST")
    SMTP_PORT: int = _int_env("SMTP_PORT", 587)
    SMTP_USER: Optional[str] = os.getenv("SMTP_USER")
    SMTP_PASSWORD: Optional[str] = os.getenv("SMTP_PASSWORD")
    MAIL_FROM: str = os.getenv("MAIL_FROM", "noreply@thamel.com")

    # Push notifications (optional - dev provider logs instead of sending)
    EXPO_PUSH_URL: str = os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
    ENABLE_PUSH: bool = os.getenv("ENABLE_PUSH", "false").lower() == "true"

    # Background jobs
    ENABLE_SCHEDULER: bool = os.getenv("ENABLE_SCHEDULER", "true").lower() == "true"
    CREDENTIAL_PURGE_INTERVAL_MINUTES: int = _int_env("CREDENTIAL_PURGE_INTERVAL_MINUTES", 15)

    # CORS
    CORS_ORIGINS: List[str] = []

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def __init__(self):
        """Initialize configuration and validate required variables"""
        self._load_cors_origins()
        self._validate()

    def _load_cors_origins(self):
        """Load CORS origins from environment variable"""
        default_origins = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:8081",  # Expo dev server
        ]

        cors_env = os.getenv("CORS_ORIGINS", "")
        if cors_env:
            env_origins = [origin.strip() for origin in cors_env.split(",") if origin.strip()]
            self.CORS_ORIGINS = default_origins + env_origins
        else:
            self.CORS_ORIGINS = default_origins

    def _validate(self):
        """Validate required configuration based on environment"""
        errors = []

        if self.ENV not in ["dev", "test", "staging", "prod"]:
            errors.append(f"Invalid ENV value: {self.ENV}. Must be 'dev', 'test', 'staging', or 'prod'")

        if not self.SECRET_KEY:
            errors.append("SECRET_KEY is required but not set")
        elif len(self.SECRET_KEY) < 32:
            errors.append(f"SECRET_KEY must be at least 32 characters (current: {len(self.SECRET_KEY)})")

        if not self.DATABASE_URL:
            errors.append("DATABASE_URL is required but not set")
        elif not self.DATABASE_URL.startswith(("postgresql", "sqlite")):
            errors.append(f"DATABASE_URL must be a PostgreSQL or SQLite connection string (got: {self.DATABASE_URL[:30]}...)")

        if self.VERIFICATION_CODE_EXPIRY_MINUTES <= 0:
            errors.append("VERIFICATION_CODE_EXPIRY_MINUTES must be positive")
        if self.HANDOFF_CODE_EXPIRY_MINUTES <= 0:
            errors.append("HANDOFF_CODE_EXPIRY_MINUTES must be positive")

        if self.ENV in ["staging", "prod"]:
            if self.DATABASE_URL.startswith("sqlite"):
                errors.append("DATABASE_URL must point to PostgreSQL in staging/production")
            if not self.ADMIN_SECRET:
                errors.append("ADMIN_SECRET is required in staging/production")

        # Fail fast in staging/prod
        if errors and self.ENV in ["staging", "prod"]:
            print("=" * 60, file=sys.stderr)
            print("CONFIGURATION VALIDATION FAILED", file=sys.stderr)
            print("=" * 60, file=sys.stderr)
            for error in errors:
                print(f"  {error}", file=sys.stderr)
            print("=" * 60, file=sys.stderr)
            sys.exit(1)

        if errors:
            print("=" * 60, file=sys.stderr)
            print(f"CONFIGURATION WARNINGS ({self.ENV} mode - continuing)", file=sys.stderr)
            print("=" * 60, file=sys.stderr)
            for error in errors:
                print(f"  {error}", file=sys.stderr)
            print("=" * 60, file=sys.stderr)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASSWORD)

    def get_database_url(self) -> str:
        """Get database URL (alias for DATABASE_URL)"""
        return self.DATABASE_URL

    def get_secret_key(self) -> str:
        """Get secret key (alias for SECRET_KEY)"""
        return self.SECRET_KEY


# Create global config instance
config = Config()
