# ============================================================================
# CLAUDE CONTEXT - WFS PROXY CONFIGURATION
# ============================================================================
# STATUS: Standalone Configuration - WFS query proxy
# PURPOSE: Self-contained configuration for outbound WFS requests
# EXPORTS: WFSProxyConfig, get_wfs_config
# INTERFACES: Pydantic BaseModel
# DEPENDENCIES: pydantic, os
# SOURCE: Environment variables (no dependency on main app config)
# PATTERNS: Settings Pattern, Singleton via cached function
# ENTRY_POINTS: from wfs.config import get_wfs_config
# ============================================================================

"""
WFS Proxy Configuration - Standalone

Environment Variables (all optional):
    - WFS_VERSION: Protocol version sent to services (default: 1.1.0)
    - WFS_DEFAULT_SRS: srsName used when the caller gives none (default: unset)
    - WFS_ARCGIS_URL_MARKER: URL fragment identifying ArcGIS servers (default: /arcgis/)
    - WFS_CAPABILITIES_TTL: Seconds to cache GetCapabilities (default: 3600)
    - WFS_HTTP_TIMEOUT: Request timeout in seconds (default: 60)
"""

import os
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class WFSProxyConfig(BaseModel):
    """
    Configuration for the WFS query proxy.
    """

    wfs_version: str = Field(
        default_factory=lambda: os.getenv("WFS_VERSION", "1.1.0"),
        description="WFS protocol version for GetFeature/GetCapabilities"
    )
    default_srs: Optional[str] = Field(
        default_factory=lambda: os.getenv("WFS_DEFAULT_SRS") or None,
        description="srsName applied when a query does not specify one"
    )
    arcgis_url_marker: str = Field(
        default_factory=lambda: os.getenv("WFS_ARCGIS_URL_MARKER", "/arcgis/"),
        description="Case-insensitive URL fragment that marks an ArcGIS WFS"
    )
    capabilities_ttl_seconds: int = Field(
        default_factory=lambda: int(os.getenv("WFS_CAPABILITIES_TTL", "3600")),
        ge=0,
        description="GetCapabilities cache lifetime"
    )
    http_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("WFS_HTTP_TIMEOUT", "60")),
        gt=0,
        le=600,
        description="Outbound WFS request timeout"
    )

    @field_validator("wfs_version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Only the versions the request builders understand."""
        if v not in ("1.0.0", "1.1.0"):
            raise ValueError(f"Unsupported WFS_VERSION '{v}' - use 1.0.0 or 1.1.0")
        return v

    @field_validator("arcgis_url_marker")
    @classmethod
    def validate_marker(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("WFS_ARCGIS_URL_MARKER must not be empty")
        return v.strip().lower()


_config_cache: Optional[WFSProxyConfig] = None


def get_wfs_config() -> WFSProxyConfig:
    """
    Get singleton WFS proxy configuration instance.

    Raises:
        ValueError: If environment variables hold invalid values
    """
    global _config_cache

    if _config_cache is None:
        _config_cache = WFSProxyConfig()

    return _config_cache
