"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App settings
    app_name: str = "Reddit Clone API"
    debug: bool = False
    secret_key: str  # Required, no default
    cors_origins: list[str] = ["http://localhost:3000"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./reddit_clone.db"

    # JWT Authentication
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24 * 7

    # Feed
    feed_max_limit: int = 50
    text_snippet_length: int = 150

    # Password reset
    password_reset_token_expire_hours: int = 72
    frontend_url: str = "http://localhost:3000"

    # Outgoing mail
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_from: str = "Reddit Clone <noreply@example.com>"

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Validate that secret_key is secure."""
        if not v:
            raise ValueError("SECRET_KEY is required")

        # In production mode, ensure secret key is strong
        debug = info.data.get("debug", False)
        if not debug:
            if len(v) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production mode")
            if v in ("change-me-in-production", "secret", "password", "changeme"):
                raise ValueError("SECRET_KEY must not be a common weak value")

        return v

    @field_validator("feed_max_limit")
    @classmethod
    def validate_feed_max_limit(cls, v: int) -> int:
        """Feed pages must hold at least one post."""
        if v < 1:
            raise ValueError("FEED_MAX_LIMIT must be at least 1")
        return v

    def validate_runtime_config(self) -> list[str]:
        """Validate runtime configuration and return warnings."""
        warnings = []

        if not self.smtp_host:
            warnings.append(
                "SMTP_HOST is not set - password reset emails will only be logged"
            )

        if self.frontend_url.startswith("http://localhost"):
            warnings.append(
                "FRONTEND_URL points at localhost - password reset links will not "
                "work outside development"
            )

        # Warn about debug mode in production
        if self.debug:
            warnings.append("DEBUG mode is enabled - should be disabled in production")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
