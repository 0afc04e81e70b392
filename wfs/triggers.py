# ============================================================================
# CLAUDE CONTEXT - WFS PROXY TRIGGERS
# ============================================================================
# STATUS: Standalone HTTP Triggers - WFS proxy endpoints
# PURPOSE: Azure Functions HTTP triggers for the map client's WFS calls
# EXPORTS: get_wfs_triggers (returns list of trigger configurations)
# INTERFACES: Azure Functions HttpRequest/HttpResponse
# PYDANTIC_MODELS: FeatureQueryParameters, FeatureIdParameters,
#                  PropertyQueryParameters, CapabilitiesParameters
# DEPENDENCIES: azure.functions, pydantic, logging
# PATTERNS: Trigger Pattern, Factory Pattern (get_wfs_triggers)
# ENTRY_POINTS: Function App route registration via get_wfs_triggers()
# ============================================================================

"""
WFS Proxy HTTP Triggers - Azure Functions Handlers

- GET /api/wfs/getAllFeatures           - Features in a bbox as GML + KML
- GET /api/wfs/requestFeature           - One feature by id as GML + KML
- GET /api/wfs/requestFeatureByProperty - Features by property equality
- GET /api/wfs/getFeatureCount          - Feature count in a bbox
- GET /api/wfs/featurePopup             - One feature as an HTML fragment
- GET /api/wfs/getFeatureAbstract       - Feature type abstract (capabilities)
- GET /api/wfs/getFeatureMetadataURL    - Feature type MetadataURL (capabilities)

Each trigger:
1. Validates query parameters (Pydantic), 400 on failure
2. Calls WFSQueryService
3. Wraps the result in the {success, data, msg} envelope
4. Maps typed failures to generic messages

Integration:
    In function_app.py:

    from wfs import get_wfs_triggers

    for trigger in get_wfs_triggers():
        app.route(
            route=trigger['route'],
            methods=trigger['methods'],
            auth_level=func.AuthLevel.ANONYMOUS
        )(trigger['handler'])
"""

import azure.functions as func
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from errors import PortalError
from infrastructure.triggers import BasePortalTrigger

from .models import (
    CapabilitiesParameters,
    FeatureIdParameters,
    FeatureQueryParameters,
    PropertyQueryParameters,
    TransformedResponse,
)
from .service import WFSQueryService

logger = logging.getLogger(__name__)

# One service per process; the transport's connection pool is reused
_service: Optional[WFSQueryService] = None


def _get_service() -> WFSQueryService:
    global _service
    if _service is None:
        _service = WFSQueryService()
    return _service


# ============================================================================
# TRIGGER REGISTRY FUNCTION
# ============================================================================

def get_wfs_triggers(service: Optional[WFSQueryService] = None) -> List[Dict[str, Any]]:
    """
    Get list of WFS proxy trigger configurations for function_app.py.

    Args:
        service: Shared WFSQueryService (process-wide default if None)

    Returns:
        List of dicts with keys: route, methods, handler
    """
    return [
        {
            'route': 'wfs/getAllFeatures',
            'methods': ['GET'],
            'handler': WFSAllFeaturesTrigger(service).handle
        },
        {
            'route': 'wfs/requestFeature',
            'methods': ['GET'],
            'handler': WFSFeatureByIdTrigger(service).handle
        },
        {
            'route': 'wfs/requestFeatureByProperty',
            'methods': ['GET'],
            'handler': WFSFeatureByPropertyTrigger(service).handle
        },
        {
            'route': 'wfs/getFeatureCount',
            'methods': ['GET'],
            'handler': WFSFeatureCountTrigger(service).handle
        },
        {
            'route': 'wfs/featurePopup',
            'methods': ['GET'],
            'handler': WFSFeaturePopupTrigger(service).handle
        },
        {
            'route': 'wfs/getFeatureAbstract',
            'methods': ['GET'],
            'handler': WFSFeatureAbstractTrigger(service).handle
        },
        {
            'route': 'wfs/getFeatureMetadataURL',
            'methods': ['GET'],
            'handler': WFSFeatureMetadataURLTrigger(service).handle
        }
    ]


# ============================================================================
# BASE TRIGGER CLASS
# ============================================================================

class BaseWFSTrigger(BasePortalTrigger):
    """Base class for WFS proxy triggers."""

    def __init__(self, service: Optional[WFSQueryService] = None):
        self._service = service

    @property
    def service(self) -> WFSQueryService:
        # Resolved lazily so registering routes never opens connections
        if self._service is None:
            self._service = _get_service()
        return self._service

    def _feature_response(self, response: TransformedResponse) -> func.HttpResponse:
        return self._success_response(
            {"gml": response.source_document, "kml": response.transformed},
            msg=response.method
        )


# ============================================================================
# ENDPOINT TRIGGERS
# ============================================================================

class WFSAllFeaturesTrigger(BaseWFSTrigger):
    """
    Features intersecting a bounding box.

    Endpoint: GET /api/wfs/getAllFeatures?serviceUrl=&typeName=&bbox=&maxFeatures=
    """

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        try:
            params = self._parse_params(req, FeatureQueryParameters)
        except ValidationError as e:
            return self._validation_response(e)

        try:
            response = self.service.query_by_encoded_bbox(
                params.serviceUrl,
                params.typeName,
                params.bbox,
                max_features=params.maxFeatures
            )
        except PortalError as e:
            return self._portal_error_response(e, params.serviceUrl, params.typeName)

        logger.info(f"getAllFeatures '{params.typeName}' from {params.serviceUrl}")
        return self._feature_response(response)


class WFSFeatureByIdTrigger(BaseWFSTrigger):
    """
    Single feature by id.

    Endpoint: GET /api/wfs/requestFeature?serviceUrl=&typeName=&featureId=
    """

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        try:
            params = self._parse_params(req, FeatureIdParameters)
        except ValidationError as e:
            return self._validation_response(e)

        try:
            response = self.service.query_by_feature_id(params.serviceUrl, params.typeName, params.featureId)
        except PortalError as e:
            return self._portal_error_response(e, params.serviceUrl, params.typeName)

        return self._feature_response(response)


class WFSFeatureByPropertyTrigger(BaseWFSTrigger):
    """
    Features whose property equals a value.

    Endpoint: GET /api/wfs/requestFeatureByProperty?serviceUrl=&typeName=&property=&value=
    """

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        try:
            params = self._parse_params(req, PropertyQueryParameters)
        except ValidationError as e:
            return self._validation_response(e)

        try:
            response = self.service.query_by_property_fallback(
                params.serviceUrl,
                params.typeName,
                params.property,
                params.value
            )
        except PortalError as e:
            return self._portal_error_response(e, params.serviceUrl, params.typeName)

        return self._feature_response(response)


class WFSFeatureCountTrigger(BaseWFSTrigger):
    """
    Feature count in a bounding box.

    Endpoint: GET /api/wfs/getFeatureCount?serviceUrl=&typeName=&bbox=&maxFeatures=
    """

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        try:
            params = self._parse_params(req, FeatureQueryParameters)
        except ValidationError as e:
            return self._validation_response(e)

        try:
            count = self.service.count_by_encoded_bbox(
                params.serviceUrl,
                params.typeName,
                params.bbox,
                max_features=params.maxFeatures
            )
        except PortalError as e:
            return self._portal_error_response(e, params.serviceUrl, params.typeName)

        return self._success_response(count)


class WFSFeaturePopupTrigger(BaseWFSTrigger):
    """
    HTML popup for one feature.

    Endpoint: GET /api/wfs/featurePopup?url=&typeName=&featureId=

    Without typeName, url is fetched as a resolvable feature reference.
    Failures return 500 with an empty body.
    """

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        url = req.params.get('url')
        if not url:
            return func.HttpResponse("", status_code=400, mimetype="text/html")

        type_name = req.params.get('typeName') or None
        feature_id = req.params.get('featureId') or None

        try:
            html = self.service.popup_html(url, type_name, feature_id)
        except PortalError as e:
            logger.warning(f"featurePopup failed for endpoint={url} featureType={type_name}: {e.message}")
            logger.debug("Failure detail", exc_info=e)
            return func.HttpResponse("", status_code=500, mimetype="text/html")

        return func.HttpResponse(html, status_code=200, mimetype="text/html")


class WFSFeatureAbstractTrigger(BaseWFSTrigger):
    """
    Feature type abstract from GetCapabilities.

    Endpoint: GET /api/wfs/getFeatureAbstract?serviceUrl=&name=
    """

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        try:
            params = self._parse_params(req, CapabilitiesParameters)
        except ValidationError as e:
            return self._validation_response(e)

        try:
            abstract = self.service.get_feature_abstract(params.serviceUrl, params.name)
        except PortalError as e:
            return self._portal_error_response(e, params.serviceUrl, params.name)

        if abstract is None:
            return self._failure_response(f"No abstract for '{params.name}'", status_code=404)
        return self._success_response(abstract)


class WFSFeatureMetadataURLTrigger(BaseWFSTrigger):
    """
    Feature type MetadataURL from GetCapabilities.

    Endpoint: GET /api/wfs/getFeatureMetadataURL?serviceUrl=&name=
    """

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        try:
            params = self._parse_params(req, CapabilitiesParameters)
        except ValidationError as e:
            return self._validation_response(e)

        try:
            metadata_url = self.service.get_feature_metadata_url(params.serviceUrl, params.name)
        except PortalError as e:
            return self._portal_error_response(e, params.serviceUrl, params.name)

        if metadata_url is None:
            return self._failure_response(f"No metadata URL for '{params.name}'", status_code=404)
        return self._success_response(metadata_url)
