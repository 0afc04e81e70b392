# ============================================================================
# CLAUDE CONTEXT - WFS PROXY MODULE
# ============================================================================
# STATUS: Standalone Module - WFS query proxy
# PURPOSE: Dialect-aware GetFeature dispatch with KML/HTML transformation
# EXPORTS: WFSQueryService, WFSProxyConfig, get_wfs_config, get_wfs_triggers
# DEPENDENCIES: lxml, httpx, pydantic, azure-functions
# ENTRY_POINTS: from wfs import get_wfs_triggers
# ============================================================================

"""
WFS Proxy - Standalone Module

Architecture:
    wfs/
    ├── config.py        # Environment-based configuration
    ├── dialect.py       # GeoServer / ArcGIS rule table
    ├── filters.py       # OGC filter construction
    ├── methods.py       # GetFeature / GetCapabilities request builders
    ├── transform.py     # XSLT GML -> KML / HTML
    ├── capabilities.py  # Cached GetCapabilities lookups
    ├── models.py        # Response envelope, trigger parameter models
    ├── service.py       # Dispatch layer
    ├── triggers.py      # Azure Functions HTTP handlers
    └── xslt/            # Bundled stylesheets

Integration:
    from wfs import get_wfs_triggers

    for trigger in get_wfs_triggers():
        app.route(
            route=trigger['route'],
            methods=trigger['methods'],
            auth_level=func.AuthLevel.ANONYMOUS
        )(trigger['handler'])
"""

from .config import WFSProxyConfig, get_wfs_config
from .dialect import DialectTag, negotiate
from .filters import FilterBuilder, FilterKind, QueryFilter
from .models import TransformedResponse
from .service import DispatchState, WFSQueryService
from .transform import TransformFormat, XsltTransformer
from .triggers import get_wfs_triggers

__version__ = "1.0.0"
__all__ = [
    "WFSProxyConfig",
    "get_wfs_config",
    "DialectTag",
    "negotiate",
    "FilterBuilder",
    "FilterKind",
    "QueryFilter",
    "TransformedResponse",
    "DispatchState",
    "WFSQueryService",
    "TransformFormat",
    "XsltTransformer",
    "get_wfs_triggers"
]
