"""
Core configuration module for docsession.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the DOCSESSION_ prefix.

Sections:
- Service configuration (name, environment, log level)
- Document store configuration (Redis URL, key prefix, TTL)
- Session cookie configuration (name and options passed to the response)
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the DOCSESSION_ prefix for environment variables.
    Example: DOCSESSION_SESSION_COOKIE_NAME=sid
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="docsession",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the structured logger",
    )

    # =========================================================================
    # Document Store Configuration
    # =========================================================================
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for the session document store",
    )
    redis_key_prefix: str = Field(
        default="session:",
        description="Prefix for session document keys in Redis",
    )
    session_ttl_seconds: int = Field(
        default=1209600,
        ge=60,
        description="Lifetime of a stored session document, refreshed on every save",
    )

    # =========================================================================
    # Session Cookie Configuration
    # =========================================================================
    session_cookie_name: str = Field(
        default="sid",
        min_length=1,
        description="Name of the cookie carrying the session id",
    )
    session_cookie_max_age: int | None = Field(
        default=None,
        ge=0,
        description="Cookie max-age in seconds (None for a browser-session cookie)",
    )
    session_cookie_path: str = Field(
        default="/",
        description="Cookie path",
    )
    session_cookie_httponly: bool = Field(
        default=True,
        description="Whether the cookie is hidden from client-side scripts",
    )
    session_cookie_secure: bool = Field(
        default=False,
        description="Whether the cookie is only sent over HTTPS",
    )
    session_cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax",
        description="SameSite policy of the cookie",
    )

    model_config = {
        "env_prefix": "DOCSESSION_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with redis:// or rediss://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
