# ============================================================================
# CLAUDE CONTEXT - APPLICATION CONFIGURATION
# ============================================================================
# STATUS: Core Infrastructure - Configuration Management
# PURPOSE: Centralized settings for outbound HTTP and catalogue listing
# EXPORTS: AppConfig, get_app_config
# DEPENDENCIES: pydantic-settings
# SOURCE: Environment variables, optional .env file
# PATTERNS: Singleton pattern for config (lru_cache)
# ============================================================================

"""
Application Configuration Module

Provides centralized configuration for the portal backend:
- Outbound HTTP behaviour (timeout, user agent)
- Catalogue listing defaults

Environment Variables (all optional):
    - HTTP_TIMEOUT_SECONDS: Remote service timeout (default: 30)
    - USER_AGENT: User-Agent header sent to remote services
    - CSW_DEFAULT_MAX_RECORDS: GetRecords page size (default: 20)

Usage:
    from config import get_app_config

    config = get_app_config()
    transport = HttpTransport(timeout=config.http_timeout_seconds)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# Application Configuration
# ============================================================================

class AppConfig(BaseSettings):
    """
    Application-wide configuration loaded from environment variables.

    Attributes:
        http_timeout_seconds: Timeout for catalogue and feature services
        user_agent: User-Agent header for outbound requests
        csw_default_max_records: Default GetRecords page size
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    http_timeout_seconds: float = Field(default=30.0, description="Outbound HTTP timeout in seconds")
    user_agent: str = Field(default="geoportal-proxy/1.0", description="Outbound User-Agent header")
    csw_default_max_records: int = Field(default=20, description="Default CSW GetRecords page size")

    @field_validator('http_timeout_seconds')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Reject non-positive timeouts."""
        if v <= 0:
            raise ValueError("HTTP_TIMEOUT_SECONDS must be greater than zero")
        return v

    @field_validator('csw_default_max_records')
    @classmethod
    def validate_max_records(cls, v: int) -> int:
        """Keep GetRecords pages within what catalogues accept."""
        if not 1 <= v <= 1000:
            raise ValueError("CSW_DEFAULT_MAX_RECORDS must be between 1 and 1000")
        return v


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """
    Get singleton application configuration instance.

    Returns:
        AppConfig: Validated configuration object

    Raises:
        ValidationError: If environment variables hold invalid values
    """
    return AppConfig()

