"""Configuration management for the document preview service.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
DPV_ prefix, or via a .env file in the project root.

Environment Variables:
    DPV_MAX_FILE_SIZE_MB: Maximum size of a previewed file in MB (default: 50)
    DPV_FETCH_TIMEOUT_SECONDS: Optional fetch timeout (default: unset, no timeout)
    DPV_FETCH_FOLLOW_REDIRECTS: Follow storage provider redirects (default: true)
    DPV_USER_AGENT: User-Agent header sent to storage providers
    DPV_SESSION_TTL_MINUTES: Idle lifetime of a preview session (default: 30)
    DPV_SESSION_CLEANUP_INTERVAL_SECONDS: Expired session sweep interval (default: 300)
    DPV_APP_NAME: Product name shown on the public view page (default: ULRMS)
    DPV_LOG_LEVEL: Logging level (default: INFO)
    DPV_DEBUG: Enable debug mode (default: false)
    DPV_CORS_ORIGINS: Comma-separated allowed CORS origins (default: *)
    DPV_SERVER_HOST: Server bind host (default: 0.0.0.0)
    DPV_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        DPV_MAX_FILE_SIZE_MB=20
        DPV_LOG_LEVEL=DEBUG
        DPV_CORS_ORIGINS=https://ulrms.example.edu
    """

    model_config = SettingsConfigDict(
        env_prefix="DPV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Fetch Settings
    # =========================================================================

    max_file_size_mb: int = 50
    """Maximum size of a fetched file in megabytes."""

    fetch_timeout_seconds: float | None = None
    """Fetch timeout in seconds. Unset means the transport's own limits apply."""

    fetch_follow_redirects: bool = True
    """Follow redirects returned by the storage provider."""

    user_agent: str = "document-preview/0.1.0"
    """User-Agent header sent when fetching source files."""

    # =========================================================================
    # Session Settings
    # =========================================================================

    session_ttl_minutes: int = 30
    """Idle time after which a preview session is discarded."""

    session_cleanup_interval_seconds: int = 300
    """How often expired sessions are swept."""

    # =========================================================================
    # Presentation Settings
    # =========================================================================

    app_name: str = "ULRMS"
    """Product name shown in the footer of the public view page."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging and error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def validate_fetch_timeout(cls, v: float | None) -> float | None:
        """Validate the optional fetch timeout is positive."""
        if v is not None and v <= 0:
            raise ValueError(f"fetch_timeout_seconds must be positive, got {v}")
        return v

    @field_validator("session_ttl_minutes", "session_cleanup_interval_seconds")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate session timings are at least 1."""
        if v < 1:
            raise ValueError(f"Session timing values must be at least 1, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def session_ttl_seconds(self) -> int:
        """Get session TTL in seconds."""
        return self.session_ttl_minutes * 60

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary for diagnostics."""
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "fetch_timeout_seconds": self.fetch_timeout_seconds,
            "fetch_follow_redirects": self.fetch_follow_redirects,
            "user_agent": self.user_agent,
            "session_ttl_minutes": self.session_ttl_minutes,
            "session_cleanup_interval_seconds": self.session_cleanup_interval_seconds,
            "app_name": self.app_name,
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log configuration warnings and a summary at application startup.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    if s.fetch_timeout_seconds is None:
        logger.debug(
            "No fetch timeout configured; relying on transport limits. "
            "Set DPV_FETCH_TIMEOUT_SECONDS to bound slow storage providers."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"max_file_size_mb={s.max_file_size_mb}, "
        f"session_ttl_minutes={s.session_ttl_minutes}"
    )


settings = Settings()
