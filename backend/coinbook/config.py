"""Application configuration using Pydantic BaseSettings."""

import logging
import os
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("coinbook.config")

# Development-only default for JWT_SECRET
_DEV_JWT_SECRET = "dev-secret-key-change-in-production-min-32-characters-long"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # MongoDB Configuration
    MONGO_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "coin"

    # Authentication
    JWT_SECRET: Optional[str] = None
    JWT_EXPIRE_HOURS: int = 24 * 7

    # Bootstrap admin account (created/repaired once at startup)
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"

    # CORS Configuration
    # Comma-separated list of allowed origins, or "*" for all origins
    CORS_ORIGINS: str = ""
    # Deployed frontend, appended to the development defaults
    FRONTEND_ORIGIN: str = ""

    # Ledger tuning
    GAME_MOVE_MAX_RETRIES: int = 5
    ENTRY_PAGE_DEFAULT: int = 30
    ENTRY_PAGE_MAX: int = 200

    # Application Metadata
    APP_VERSION: str = "1.0.0"

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def validate_jwt_secret(cls, v):
        """Validate JWT_SECRET and provide development default with warning."""
        if v is None or v == "":
            is_production = os.getenv("RAILWAY_ENVIRONMENT") == "production"
            if is_production:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "This is a critical security requirement."
                )
            logger.warning(
                "JWT_SECRET not set! Using development default. "
                "This is INSECURE for production. "
                "Set JWT_SECRET environment variable."
            )
            return _DEV_JWT_SECRET
        return v

    @property
    def cors_origins(self) -> list[str]:
        """Return list of allowed CORS origins.

        An explicit CORS_ORIGINS wins. Otherwise the local Vite and
        Vercel dev servers are allowed, plus FRONTEND_ORIGIN when set.
        """
        if self.CORS_ORIGINS:
            if self.CORS_ORIGINS == "*":
                return ["*"]
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

        origins = [
            "http://localhost:5173",
            "http://localhost:3000",
        ]
        if self.FRONTEND_ORIGIN:
            origins.append(self.FRONTEND_ORIGIN.strip())
        return origins


# Global settings instance
settings = Settings()
