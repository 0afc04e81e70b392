# ============================================================================
# CLAUDE CONTEXT - ERROR TAXONOMY
# ============================================================================
# STATUS: Core Infrastructure - Typed failures for catalogue and WFS proxying
# PURPOSE: Single home for every exception raised by csw/ and wfs/
# EXPORTS: PortalError, ClassificationError, MalformedExtentError,
#          InvalidFilterError, UpstreamError, TransformError, DocumentAddressError
# DEPENDENCIES: typing (stdlib only)
# PATTERNS: Error code per class, context kwargs stored on the instance
# ============================================================================

"""
Portal Error Taxonomy

Two families of failure:

Per-entry (absorbed where they happen, logged at DEBUG):
    - ClassificationError: one linked resource could not be typed
    - MalformedExtentError: one bounding box could not be read

Whole-operation (propagate to the caller):
    - InvalidFilterError: bad filter arguments
    - UpstreamError: transport/HTTP failure or OWS exception report
    - TransformError: response received but not convertible
    - DocumentAddressError: document or path expression unusable

Usage:
    from errors import UpstreamError

    try:
        response = service.query_by_filter(...)
    except UpstreamError as e:
        logger.warning(f"WFS unavailable: {e.message}")
"""

from typing import Any, Dict, Optional


class PortalError(Exception):
    """
    Base class for all portal errors.

    Attributes:
        code: Stable error code (e.g. PORTAL-WFS001)
        message: Human-readable message
        context: Extra keyword context, also set as attributes
    """

    code: str = "PORTAL-000"

    _RESERVED_ATTRS = frozenset({"code", "message", "context", "args"})

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        for key, value in context.items():
            if key not in self._RESERVED_ATTRS:
                setattr(self, key, value)
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": {k: str(v) for k, v in self.context.items()},
        }


# ============================================================================
# CATALOGUE RECORD ERRORS (absorbed per entry)
# ============================================================================

class ClassificationError(PortalError):
    """A linked resource has no usable URL or no recognised protocol."""

    code = "PORTAL-CSW001"


class MalformedExtentError(PortalError):
    """A bounding box has missing/non-numeric coordinates or south > north."""

    code = "PORTAL-CSW002"


class DocumentAddressError(PortalError):
    """
    The document cannot be addressed or a path expression is invalid.

    Path expressions are fixed in code, so outside of a broken input
    document this indicates a programming error.
    """

    code = "PORTAL-CSW003"


# ============================================================================
# FEATURE QUERY ERRORS (propagate)
# ============================================================================

class InvalidFilterError(PortalError):
    """Filter arguments are unusable (e.g. blank property name)."""

    code = "PORTAL-WFS001"


class UpstreamError(PortalError):
    """Network, HTTP or OWS exception failure from the remote service."""

    code = "PORTAL-WFS002"

    def __init__(self, message: str, status_code: Optional[int] = None, **context: Any):
        self.status_code = status_code
        super().__init__(message, status_code=status_code, **context)


class TransformError(PortalError):
    """Upstream body could not be converted into the display format."""

    code = "PORTAL-WFS003"
