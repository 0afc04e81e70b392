# ============================================================================
# CLAUDE CONTEXT - HTTP TRANSPORT
# ============================================================================
# STATUS: Core Infrastructure - Outbound HTTP to catalogue and feature services
# PURPOSE: send(endpoint, method, body) -> (status, body) over httpx
# EXPORTS: Transport, HttpTransport, TransportResponse
# DEPENDENCIES: httpx (sync)
# PORTABLE: Yes - no config imports, timeout and user agent are constructor params
# ============================================================================
"""
HTTP Transport (SYNC VERSION).

Every remote call made by csw/ and wfs/ goes through Transport.send(). The
transport reports the HTTP status and body as received; deciding whether a
status is a failure belongs to the caller. Network-level failures (timeouts,
refused connections, cancelled requests) are all raised as UpstreamError.

No retries are performed here.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Status and body of one upstream response."""
    status_code: int
    body: str
    content_type: Optional[str] = None


class Transport:
    """
    Interface consumed by the catalogue and WFS services.

    Test doubles subclass this and override send().
    """

    def send(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[str] = None,
        params: Optional[Dict[str, str]] = None
    ) -> TransportResponse:
        raise NotImplementedError

    def close(self) -> None:
        """Release any held connections."""


class HttpTransport(Transport):
    """
    httpx backed transport (SYNC VERSION).

    Usage:
        transport = HttpTransport(timeout=30.0)
        response = transport.send(url, "POST", body=get_feature_xml)
        transport.close()
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        client: Optional[httpx.Client] = None
    ):
        """
        Initialize transport.

        Args:
            timeout: Request timeout in seconds.
            user_agent: Optional User-Agent header.
            client: Pre-built httpx client (tests pass one with a MockTransport).
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._client: Optional[httpx.Client] = client

    def _get_client(self) -> httpx.Client:
        """Get or create sync HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers=headers
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()

    def send(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[str] = None,
        params: Optional[Dict[str, str]] = None
    ) -> TransportResponse:
        """
        Make one HTTP request.

        Args:
            endpoint: Remote service URL
            method: GET or POST
            body: XML request body for POST
            params: Query parameters

        Returns:
            TransportResponse with status code and decoded body

        Raises:
            UpstreamError: On timeout, connection failure or unsupported method
        """
        method = method.upper()
        client = self._get_client()

        try:
            if method == "GET":
                response = client.get(endpoint, params=params)
            elif method == "POST":
                response = client.post(
                    endpoint,
                    params=params,
                    content=(body or "").encode("utf-8"),
                    headers={"Content-Type": "text/xml; charset=UTF-8"}
                )
            else:
                raise UpstreamError(f"Unsupported HTTP method: {method}", endpoint=endpoint)

            logger.debug(f"{method} {endpoint} -> {response.status_code}")

            return TransportResponse(
                status_code=response.status_code,
                body=response.text,
                content_type=response.headers.get("content-type")
            )

        except httpx.TimeoutException:
            raise UpstreamError(
                f"Request to {endpoint} timed out after {self.timeout}s",
                status_code=504,
                endpoint=endpoint
            )
        except httpx.HTTPError as e:
            raise UpstreamError(
                f"Request to {endpoint} failed: {e}",
                endpoint=endpoint
            )
