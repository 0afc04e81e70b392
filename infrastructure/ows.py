"""
OWS response checks shared by the CSW and WFS clients.

OGC services frequently answer HTTP 200 with an exception document instead
of data; those are upstream failures just like an HTTP 500.
"""

from typing import Optional

from errors import DocumentAddressError, UpstreamError
from infrastructure.addressing import DocumentNode
from infrastructure.transport import TransportResponse

_EXCEPTION_ROOTS = {"ExceptionReport", "ServiceExceptionReport"}


def exception_text(root: DocumentNode) -> Optional[str]:
    """Exception message if root is an OWS exception report, else None."""
    if root.local_name not in _EXCEPTION_ROOTS:
        return None
    messages = [
        node.text.strip()
        for node in root.evaluate(".//*[local-name()='ExceptionText'] | .//*[local-name()='ServiceException']")
    ]
    return "; ".join(m for m in messages if m) or "Service returned an exception report"


def check_ows_response(response: TransportResponse, endpoint: str) -> Optional[DocumentNode]:
    """
    Reject HTTP errors and exception reports, tolerating non-XML bodies.

    Returns:
        Root DocumentNode, or None when the body is not XML

    Raises:
        UpstreamError: HTTP error status or exception report
    """
    if response.status_code >= 400:
        raise UpstreamError(
            f"{endpoint} returned HTTP {response.status_code}",
            status_code=response.status_code,
            endpoint=endpoint
        )

    try:
        root = DocumentNode.from_string(response.body)
    except DocumentAddressError:
        return None

    message = exception_text(root)
    if message is not None:
        raise UpstreamError(f"{endpoint} returned an exception report: {message}", endpoint=endpoint)

    return root


def parse_ows_response(response: TransportResponse, endpoint: str) -> DocumentNode:
    """
    Check status and body of an OGC service response that must be XML.

    Returns:
        Root DocumentNode of the response

    Raises:
        UpstreamError: HTTP error status, non-XML body or exception report
    """
    root = check_ows_response(response, endpoint)
    if root is None:
        raise UpstreamError(f"{endpoint} returned a non-XML response", endpoint=endpoint)
    return root
