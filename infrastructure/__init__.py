# ============================================================================
# CLAUDE CONTEXT - INFRASTRUCTURE MODULE
# ============================================================================
# STATUS: Core Infrastructure - Document addressing and HTTP transport
# PURPOSE: Shared infrastructure components for catalogue and WFS proxying
# EXPORTS: DocumentNode, NAMESPACES, Transport, HttpTransport, TransportResponse
# DEPENDENCIES: lxml, httpx
# ============================================================================

"""
Infrastructure Module

Provides shared infrastructure components:
- Namespace-aware document addressing (DocumentNode)
- Outbound HTTP (HttpTransport)

Both csw/ and wfs/ depend only on these interfaces; tests substitute
their own Transport.
"""

from .addressing import DocumentNode, NAMESPACES
from .transport import Transport, HttpTransport, TransportResponse

__version__ = "1.0.0"
__all__ = [
    "DocumentNode",
    "NAMESPACES",
    "Transport",
    "HttpTransport",
    "TransportResponse"
]
