# ============================================================================
# CLAUDE CONTEXT - WFS CAPABILITIES LOOKUP
# ============================================================================
# STATUS: WFS Layer - GetCapabilities per-layer abstracts and metadata URLs
# PURPOSE: Map feature type name -> abstract / metadata URL for an endpoint
# EXPORTS: CapabilitiesService, WFSCapabilities, TTLCache, clear_capabilities_cache
# DEPENDENCIES: lxml (via infrastructure), httpx (via HttpTransport)
# PATTERNS: Thread-safe TTL cache, injected transport
# ============================================================================

"""
WFS Capabilities Lookup

Capabilities documents are large and change rarely, so parsed results are
cached per endpoint for WFS_CAPABILITIES_TTL seconds. This cache is the only
state shared between requests in the WFS layer.

Usage:
    service = CapabilitiesService(HttpTransport())
    abstract = service.get_capabilities(url).feature_abstracts.get("gsml:Borehole")
"""

import logging
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, Optional, Tuple

from infrastructure.addressing import DocumentNode
from infrastructure.ows import parse_ows_response
from infrastructure.transport import Transport
from util_logger import ComponentType, log_exceptions

from .config import WFSProxyConfig, get_wfs_config
from .methods import get_capabilities_request

logger = logging.getLogger(__name__)


# ============================================================================
# TTL CACHE FOR CAPABILITIES LOOKUPS
# ============================================================================

class TTLCache:
    """
    Thread-safe per-endpoint cache of parsed capabilities.

    Entries expire ttl_seconds after being stored. When full, expired entries
    are purged first and then the entries closest to expiry are dropped.
    """

    def __init__(self, ttl_seconds: int = 3600, max_size: int = 200):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = Lock()

    def get(self, endpoint: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(endpoint)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._entries[endpoint]
                return None
            return value

    def set(self, endpoint: str, value: Any) -> None:
        with self._lock:
            if endpoint not in self._entries and len(self._entries) >= self.max_size:
                self._make_room()
            self._entries[endpoint] = (value, time.monotonic() + self.ttl_seconds)

    def _make_room(self) -> None:
        now = time.monotonic()
        for endpoint in [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]:
            del self._entries[endpoint]
        if len(self._entries) < self.max_size:
            return
        # Drop the tenth of entries nearest expiry
        by_expiry = sorted(self._entries, key=lambda k: self._entries[k][1])
        for endpoint in by_expiry[:max(1, len(by_expiry) // 10)]:
            del self._entries[endpoint]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            now = time.monotonic()
            valid = sum(1 for _, expires_at in self._entries.values() if expires_at > now)
            return {
                "total_entries": len(self._entries),
                "valid_entries": valid,
                "expired_entries": len(self._entries) - valid,
                "ttl_seconds": self.ttl_seconds,
                "max_size": self.max_size
            }


# Global cache instance (shared across requests in same process)
_capabilities_cache = TTLCache(ttl_seconds=get_wfs_config().capabilities_ttl_seconds)


@dataclass
class WFSCapabilities:
    """Per feature type text pulled from a capabilities document."""
    feature_abstracts: Dict[str, str] = field(default_factory=dict)
    metadata_urls: Dict[str, str] = field(default_factory=dict)


def parse_capabilities(document) -> WFSCapabilities:
    """Read wfs:FeatureTypeList from a WFS 1.0/1.1 capabilities document."""
    root = DocumentNode.wrap(document)
    capabilities = WFSCapabilities()

    for feature_type in root.evaluate("wfs:FeatureTypeList/wfs:FeatureType"):
        name = feature_type.first_text("wfs:Name")
        if not name:
            continue
        abstract = feature_type.first_text("wfs:Abstract")
        if abstract:
            capabilities.feature_abstracts[name] = abstract
        metadata_url = feature_type.first_text("wfs:MetadataURL")
        if metadata_url:
            capabilities.metadata_urls[name] = metadata_url

    return capabilities


class CapabilitiesService:
    """
    Cached GetCapabilities lookups.
    """

    def __init__(
        self,
        transport: Transport,
        config: Optional[WFSProxyConfig] = None,
        cache: Optional[TTLCache] = None
    ):
        self.transport = transport
        self.config = config or get_wfs_config()
        self.cache = cache if cache is not None else _capabilities_cache

    @log_exceptions(ComponentType.ADAPTER, "CapabilitiesService")
    def get_capabilities(self, endpoint: str, use_cache: bool = True) -> WFSCapabilities:
        """
        Capabilities of the WFS at endpoint.

        Raises:
            UpstreamError: Transport failure, HTTP error or exception report
        """
        if use_cache:
            cached = self.cache.get(endpoint)
            if cached is not None:
                logger.debug(f"Capabilities cache hit: {endpoint}")
                return cached

        request = get_capabilities_request(endpoint, self.config.wfs_version)
        response = self.transport.send(request.url, request.method, params=request.params)
        capabilities = parse_capabilities(parse_ows_response(response, endpoint))

        if use_cache:
            self.cache.set(endpoint, capabilities)
            logger.debug(f"Capabilities cache store: {endpoint}")

        return capabilities


def get_capabilities_cache_stats() -> Dict[str, Any]:
    """Statistics for the capabilities cache."""
    return _capabilities_cache.stats()


def clear_capabilities_cache() -> None:
    """Clear the capabilities cache."""
    _capabilities_cache.clear()
    logger.info("Capabilities cache cleared")
