"""
Core configuration module for websession.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the WEBSESSION_ prefix.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from websession.models.domain import CookiePolicy, TimeoutPolicy


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    All fields use the WEBSESSION_ prefix for environment variables.
    Example: WEBSESSION_REDIS_URL=redis://cache:6379
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="websession",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for structured logging",
    )

    # =========================================================================
    # Redis Configuration
    # =========================================================================
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for the session store",
    )
    redis_pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Size of the Redis connection pool",
    )
    redis_key_prefix: str = Field(
        default="sessions:",
        min_length=1,
        description="Prefix for all session keys in Redis",
    )
    session_retention_seconds: Optional[int] = Field(
        default=None,
        ge=0,
        description=(
            "Seconds to keep a record after its absolute timeout passes; "
            "None keeps records until deleted externally"
        ),
    )

    # =========================================================================
    # Store Call Deadline
    # =========================================================================
    store_timeout_seconds: Optional[float] = Field(
        default=5.0,
        ge=0.0,
        description="Deadline for a single store call; None or 0 disables it",
    )

    # =========================================================================
    # Cookie Policy Defaults
    # =========================================================================
    cookie_path: str = Field(default="/", description="Cookie path attribute")
    cookie_domain: str = Field(default="", description="Cookie domain attribute")
    cookie_secure: bool = Field(default=True, description="Cookie Secure flag")
    cookie_http_only: bool = Field(default=True, description="Cookie HttpOnly flag")
    cookie_max_age_seconds: int = Field(
        default=24 * 60 * 60,
        description="Cookie Max-Age in seconds",
    )
    cookie_same_site: Literal["default", "lax", "strict", "none"] = Field(
        default="strict",
        description="Cookie SameSite mode",
    )

    # =========================================================================
    # Timeout Policy Defaults
    # =========================================================================
    idle_timeout_seconds: int = Field(
        default=24 * 60 * 60,
        ge=0,
        description="Maximum inactivity before a session expires",
    )
    absolute_timeout_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        ge=0,
        description="Maximum lifetime of a session regardless of activity",
    )

    model_config = {
        "env_prefix": "WEBSESSION_",
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
        """Validate and normalize the log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.upper()
        if level not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return level

    # =========================================================================
    # Policy Builders
    # =========================================================================
    def cookie_policy(self) -> "CookiePolicy":
        """Build the cookie policy described by these settings."""
        from websession.models.domain import CookiePolicy, SameSite

        return CookiePolicy(
            path=self.cookie_path,
            domain=self.cookie_domain,
            secure=self.cookie_secure,
            http_only=self.cookie_http_only,
            max_age=self.cookie_max_age_seconds,
            same_site=SameSite(self.cookie_same_site),
        )

    def timeout_policy(self) -> "TimeoutPolicy":
        """Build the timeout policy described by these settings."""
        from datetime import timedelta

        from websession.models.domain import TimeoutPolicy

        return TimeoutPolicy(
            idle_timeout=timedelta(seconds=self.idle_timeout_seconds),
            absolute_timeout=timedelta(seconds=self.absolute_timeout_seconds),
        )


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.

    Returns:
        Settings: The settings instance.
    """
    return Settings()
