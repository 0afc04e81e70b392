# ============================================================================
# CLAUDE CONTEXT - WFS QUERY SERVICE
# ============================================================================
# STATUS: WFS Layer - Feature query dispatch
# PURPOSE: Negotiate dialect, build filter, send GetFeature, transform response
# EXPORTS: WFSQueryService, DispatchState
# INTERFACES: Transport, Transformer, CapabilitiesService (all injectable)
# DEPENDENCIES: lxml, httpx (via collaborators)
# PATTERNS: Service Layer, Facade Pattern, injected logger
# ENTRY_POINTS: service = WFSQueryService(); service.query_by_filter(...)
# ============================================================================

"""
WFS Query Service - Dispatch Layer

Every operation follows the same per-call path, traced at DEBUG:

    IDLE -> DIALECT_NEGOTIATED -> FILTER_BUILT -> REQUEST_SENT
         -> TRANSFORM_SUCCEEDED | TRANSFORM_FAILED -> TERMINAL

Nothing is retried here. One upstream failure is one UpstreamError; retry
policy, if any, belongs to the transport. Nothing is kept between calls
except inside the capabilities lookup.

Usage:
    service = WFSQueryService()
    response = service.query_by_encoded_bbox(url, "gsml:Borehole", bbox_json, max_features=200)
    kml = response.transformed
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import Optional

from config import get_app_config
from errors import InvalidFilterError, TransformError, UpstreamError
from infrastructure.addressing import DocumentNode
from infrastructure.ows import check_ows_response, parse_ows_response
from infrastructure.transport import HttpTransport, Transport, TransportResponse
from util_logger import ComponentType, LoggerFactory

from .capabilities import CapabilitiesService
from .config import WFSProxyConfig, get_wfs_config
from .dialect import DialectTag, negotiate, rules_for
from .filters import FilterBuilder, FilterKind, QueryFilter, build_filter
from .methods import (
    WFSRequest,
    get_feature_by_id_request,
    get_feature_request,
    resolve_request,
)
from .models import TransformedResponse
from .transform import TransformFormat, Transformer, XsltTransformer

# Count attributes, WFS 1.1 then WFS 2.0
_COUNT_ATTRIBUTES = ("numberOfFeatures", "numberMatched")


class DispatchState(Enum):
    IDLE = "idle"
    DIALECT_NEGOTIATED = "dialect_negotiated"
    FILTER_BUILT = "filter_built"
    REQUEST_SENT = "request_sent"
    TRANSFORM_SUCCEEDED = "transform_succeeded"
    TRANSFORM_FAILED = "transform_failed"
    TERMINAL = "terminal"


class WFSQueryService:
    """
    Business logic service for proxied WFS queries.

    Responsibilities:
    - Pick the server dialect from the endpoint URL
    - Build filters and GetFeature requests
    - Send through the transport, reject HTTP/OWS failures
    - Transform GML into KML or HTML
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        transformer: Optional[Transformer] = None,
        capabilities: Optional[CapabilitiesService] = None,
        filter_builder: Optional[FilterBuilder] = None,
        config: Optional[WFSProxyConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize service with collaborators.

        Args:
            transport: Outbound HTTP (default HttpTransport)
            transformer: GML transformer (default XsltTransformer)
            capabilities: Capabilities lookup (default CapabilitiesService over transport)
            filter_builder: Filter factory (default FilterBuilder)
            config: WFS configuration (uses singleton if not provided)
            logger: Diagnostic sink (default a SERVICE component logger)
        """
        self.config = config or get_wfs_config()
        self.transport = transport or HttpTransport(
            timeout=self.config.http_timeout_seconds,
            user_agent=get_app_config().user_agent
        )
        self.transformer = transformer or XsltTransformer()
        self.capabilities = capabilities or CapabilitiesService(self.transport, self.config)
        self.filter_builder = filter_builder or FilterBuilder()
        self.logger = logger or LoggerFactory.create_logger(ComponentType.SERVICE, "WFSQueryService")

    def close(self) -> None:
        self.transport.close()

    # ========================================================================
    # FEATURE QUERIES
    # ========================================================================

    def query_by_filter(
        self,
        endpoint: str,
        feature_type: str,
        query_filter: QueryFilter,
        max_features: int = 0,
        crs: Optional[str] = None,
        target: TransformFormat = TransformFormat.KML
    ) -> TransformedResponse:
        """
        Query features matching a filter.

        Args:
            endpoint: WFS endpoint URL
            feature_type: Feature type name
            query_filter: Filter to apply
            max_features: Result cap; 0 means unlimited
            crs: Output srsName (falls back to WFS_DEFAULT_SRS)
            target: Display format

        Raises:
            UpstreamError: Transport, HTTP or OWS failure
            TransformError: Response could not be transformed
        """
        label = f"{feature_type}@{endpoint}"
        self._trace(label, DispatchState.IDLE)
        dialect = negotiate(endpoint, self.config.arcgis_url_marker)
        self._trace(label, DispatchState.DIALECT_NEGOTIATED, dialect)
        query_filter = self._for_dialect(query_filter, dialect)
        self._trace(label, DispatchState.FILTER_BUILT, query_filter.kind)

        request = get_feature_request(
            endpoint,
            feature_type,
            query_filter,
            max_features=max_features,
            srs_name=crs or self.config.default_srs,
            version=self.config.wfs_version
        )
        return self._send_and_transform(request, endpoint, target, label)

    def query_by_encoded_bbox(
        self,
        endpoint: str,
        feature_type: str,
        encoded_bbox: Optional[str],
        max_features: int = 0,
        crs: Optional[str] = None,
        target: TransformFormat = TransformFormat.KML
    ) -> TransformedResponse:
        """
        Query with a client encoded bounding box; unreadable bbox queries all records.
        """
        dialect = negotiate(endpoint, self.config.arcgis_url_marker)
        query_filter = build_filter(encoded_bbox, dialect, self.filter_builder)
        return self.query_by_filter(endpoint, feature_type, query_filter, max_features, crs, target)

    def query_by_feature_id(
        self,
        endpoint: str,
        feature_type: str,
        feature_id: str,
        target: TransformFormat = TransformFormat.KML
    ) -> TransformedResponse:
        """
        Fetch one feature by identifier.

        Dialects with native id lookup get a featureID GET; the others get an
        equality filter on the dialect's identifier property.

        Raises:
            InvalidFilterError: Empty feature_id
            UpstreamError, TransformError
        """
        if not feature_id or not feature_id.strip():
            raise InvalidFilterError("Feature lookup requires a feature id")

        label = f"{feature_type}#{feature_id}@{endpoint}"
        self._trace(label, DispatchState.IDLE)
        dialect = negotiate(endpoint, self.config.arcgis_url_marker)
        rules = rules_for(dialect)
        self._trace(label, DispatchState.DIALECT_NEGOTIATED, dialect)

        if rules.native_feature_id:
            request = get_feature_by_id_request(endpoint, feature_type, feature_id, self.config.wfs_version)
            self._trace(label, DispatchState.FILTER_BUILT, "featureID")
        else:
            local_id = feature_id.rsplit(".", 1)[-1]
            query_filter = self.filter_builder.property_equals(rules.id_property, local_id)
            request = get_feature_request(endpoint, feature_type, query_filter, version=self.config.wfs_version)
            self._trace(label, DispatchState.FILTER_BUILT, query_filter.kind)

        return self._send_and_transform(request, endpoint, target, label)

    def query_by_property_fallback(
        self,
        endpoint: str,
        feature_type: str,
        property_name: str,
        value: str,
        target: TransformFormat = TransformFormat.KML
    ) -> TransformedResponse:
        """
        Equality query for services whose feature id lookups are unreliable
        (e.g. simple feature stores without primary keys).

        Raises:
            InvalidFilterError: Blank property name
            UpstreamError, TransformError
        """
        query_filter = self.filter_builder.property_equals(property_name, value)
        return self.query_by_filter(endpoint, feature_type, query_filter, target=target)

    # ========================================================================
    # COUNTS
    # ========================================================================

    def count_by_filter(
        self,
        endpoint: str,
        feature_type: str,
        query_filter: QueryFilter,
        max_features: int = 0
    ) -> int:
        """
        Number of features matching a filter (resultType="hits").

        Raises:
            UpstreamError: Transport/HTTP/OWS failure or no readable count
        """
        label = f"count {feature_type}@{endpoint}"
        self._trace(label, DispatchState.IDLE)
        dialect = negotiate(endpoint, self.config.arcgis_url_marker)
        self._trace(label, DispatchState.DIALECT_NEGOTIATED, dialect)
        query_filter = self._for_dialect(query_filter, dialect)
        self._trace(label, DispatchState.FILTER_BUILT, query_filter.kind)

        request = get_feature_request(
            endpoint,
            feature_type,
            query_filter,
            max_features=max_features,
            hits_only=True,
            version=self.config.wfs_version
        )
        root = self._send(request, endpoint)
        self._trace(label, DispatchState.REQUEST_SENT)

        count = self._read_count(root, endpoint)
        self._trace(label, DispatchState.TERMINAL)
        self.logger.info(f"Count of '{feature_type}' from {endpoint}: {count}")
        return count

    def count_by_encoded_bbox(
        self,
        endpoint: str,
        feature_type: str,
        encoded_bbox: Optional[str],
        max_features: int = 0
    ) -> int:
        """Count with a client encoded bounding box; unreadable bbox counts all records."""
        dialect = negotiate(endpoint, self.config.arcgis_url_marker)
        query_filter = build_filter(encoded_bbox, dialect, self.filter_builder)
        return self.count_by_filter(endpoint, feature_type, query_filter, max_features)

    # ========================================================================
    # POPUPS
    # ========================================================================

    def popup_html(
        self,
        endpoint: str,
        feature_type: Optional[str] = None,
        feature_id: Optional[str] = None
    ) -> str:
        """
        HTML description of one feature.

        Without a feature type, endpoint is treated as a resolvable reference
        (a URL that itself returns a WFS response) and fetched as is.
        """
        if not feature_type:
            label = f"resolve {endpoint}"
            self._trace(label, DispatchState.IDLE)
            response = self._send_and_transform(resolve_request(endpoint), endpoint, TransformFormat.HTML, label)
            return response.transformed

        return self.query_by_feature_id(endpoint, feature_type, feature_id, TransformFormat.HTML).transformed

    # ========================================================================
    # CAPABILITIES
    # ========================================================================

    def get_feature_abstract(self, endpoint: str, name: str) -> Optional[str]:
        """Abstract of feature type name from the service capabilities."""
        return self.capabilities.get_capabilities(endpoint).feature_abstracts.get(name)

    def get_feature_metadata_url(self, endpoint: str, name: str) -> Optional[str]:
        """MetadataURL of feature type name from the service capabilities."""
        return self.capabilities.get_capabilities(endpoint).metadata_urls.get(name)

    # ========================================================================
    # DISPATCH HELPERS
    # ========================================================================

    def _trace(self, label: str, state: DispatchState, detail=None) -> None:
        if isinstance(detail, Enum):
            detail = detail.value
        suffix = f" ({detail})" if detail is not None else ""
        self.logger.debug(f"[{label}] {state.name}{suffix}")

    @staticmethod
    def _for_dialect(query_filter: QueryFilter, dialect: DialectTag) -> QueryFilter:
        # Envelope syntax and axis order follow the endpoint, not the caller
        if query_filter.kind is FilterKind.BBOX and query_filter.dialect is not dialect:
            return replace(query_filter, dialect=dialect)
        return query_filter

    def _exchange(self, request: WFSRequest) -> TransportResponse:
        return self.transport.send(
            request.url,
            request.method,
            body=request.body,
            params=request.params or None
        )

    def _send(self, request: WFSRequest, endpoint: str) -> DocumentNode:
        return parse_ows_response(self._exchange(request), endpoint)

    def _send_and_transform(
        self,
        request: WFSRequest,
        endpoint: str,
        target: TransformFormat,
        label: str
    ) -> TransformedResponse:
        response = self._exchange(request)
        # Non-XML bodies are left for the transformer to reject
        check_ows_response(response, endpoint)
        self._trace(label, DispatchState.REQUEST_SENT)

        try:
            transformed = self.transformer.transform(response.body, target)
        except TransformError:
            self._trace(label, DispatchState.TRANSFORM_FAILED)
            self._trace(label, DispatchState.TERMINAL)
            raise

        self._trace(label, DispatchState.TRANSFORM_SUCCEEDED, target)
        self._trace(label, DispatchState.TERMINAL)
        self.logger.info(f"Transformed {label} to {target.value}")

        return TransformedResponse(
            source_document=response.body,
            transformed=transformed,
            method=request.describe()
        )

    @staticmethod
    def _read_count(root: DocumentNode, endpoint: str) -> int:
        for attribute in _COUNT_ATTRIBUTES:
            raw = root.attribute(attribute)
            if raw is None:
                continue
            try:
                return int(raw)
            except ValueError:
                raise UpstreamError(f"{endpoint} returned an unreadable {attribute}: {raw!r}", endpoint=endpoint)
        raise UpstreamError(f"{endpoint} returned no feature count", endpoint=endpoint)
