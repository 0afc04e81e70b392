# ============================================================================
# CLAUDE CONTEXT - AZURE FUNCTIONS ENTRY POINT
# ============================================================================
# STATUS: Core Infrastructure - Function App Entry Point
# PURPOSE: Main entry point for Azure Functions runtime with WFS and CSW endpoints
# EXPORTS: app (FunctionApp instance)
# DEPENDENCIES: azure-functions, wfs, csw, health
# ============================================================================

"""
Azure Functions Entry Point for the geoportal proxy

Registers all HTTP triggers:
    - WFS proxy: 7 endpoints (features, counts, popups, capabilities text)
    - Catalogue: 1 endpoint (parsed CSW GetRecords page)
    - Health checks: 2 endpoints
        - /api/health - Public (minimal response for external callers)
        - /api/health/detailed - Internal (full checks for probes)

Deployment:
    - Local: func start
    - Azure: func azure functionapp publish <app-name> --python --build remote
"""

import azure.functions as func
import json
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize Azure Function App
app = func.FunctionApp()

# ============================================================================
# WFS Proxy - 7 Endpoints
# ============================================================================

try:
    from wfs import get_wfs_triggers

    logger.info("Registering WFS proxy endpoints...")

    wfs_triggers = {t['route']: t['handler'] for t in get_wfs_triggers()}

    @app.route(route="wfs/getAllFeatures", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
    def wfs_get_all_features(req: func.HttpRequest) -> func.HttpResponse:
        return wfs_triggers["wfs/getAllFeatures"](req)

    @app.route(route="wfs/requestFeature", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
    def wfs_request_feature(req: func.HttpRequest) -> func.HttpResponse:
        return wfs_triggers["wfs/requestFeature"](req)

    @app.route(route="wfs/requestFeatureByProperty", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
    def wfs_request_feature_by_property(req: func.HttpRequest) -> func.HttpResponse:
        return wfs_triggers["wfs/requestFeatureByProperty"](req)

    @app.route(route="wfs/getFeatureCount", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
    def wfs_get_feature_count(req: func.HttpRequest) -> func.HttpResponse:
        return wfs_triggers["wfs/getFeatureCount"](req)

    @app.route(route="wfs/featurePopup", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
    def wfs_feature_popup(req: func.HttpRequest) -> func.HttpResponse:
        return wfs_triggers["wfs/featurePopup"](req)

    @app.route(route="wfs/getFeatureAbstract", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
    def wfs_get_feature_abstract(req: func.HttpRequest) -> func.HttpResponse:
        return wfs_triggers["wfs/getFeatureAbstract"](req)

    @app.route(route="wfs/getFeatureMetadataURL", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
    def wfs_get_feature_metadata_url(req: func.HttpRequest) -> func.HttpResponse:
        return wfs_triggers["wfs/getFeatureMetadataURL"](req)

    logger.info("✅ WFS proxy registered successfully (7 endpoints)")

except ImportError as e:
    logger.warning(f"⚠️ WFS proxy module not available: {e}")
    logger.warning("WFS proxy will not be available")

# ============================================================================
# Catalogue - 1 Endpoint
# ============================================================================

try:
    from csw.triggers import get_csw_triggers

    logger.info("Registering catalogue endpoints...")

    csw_triggers = get_csw_triggers()

    @app.route(route="csw/getRecords", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
    def csw_get_records(req: func.HttpRequest) -> func.HttpResponse:
        return csw_triggers[0]['handler'](req)

    logger.info("✅ Catalogue registered successfully (1 endpoint)")

except ImportError as e:
    logger.warning(f"⚠️ Catalogue module not available: {e}")
    logger.warning("Catalogue endpoints will not be available")

# ============================================================================
# Health Check Endpoints
# ============================================================================

@app.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health(req: func.HttpRequest) -> func.HttpResponse:
    """
    Public health check endpoint - minimal response.

    Returns:
        JSON with status and timestamp only
    """
    from health import get_public_health

    result = get_public_health()

    return func.HttpResponse(
        json.dumps(result, default=str),
        mimetype="application/json",
        status_code=200,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"}
    )


@app.route(route="health/detailed", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_detailed(req: func.HttpRequest) -> func.HttpResponse:
    """
    Detailed health check endpoint - for probes and operations.

    Returns 503 if unhealthy, 200 otherwise.
    """
    from health import get_detailed_health, HealthStatus

    result = get_detailed_health()

    status_code = 503 if result["status"] == HealthStatus.UNHEALTHY.value else 200

    return func.HttpResponse(
        json.dumps(result, default=str, indent=2),
        mimetype="application/json",
        status_code=status_code,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"}
    )

# ============================================================================
# Application Startup
# ============================================================================

from health import APP_NAME, APP_DESCRIPTION

logger.info("="*60)
logger.info(f"{APP_NAME} - {APP_DESCRIPTION}")
logger.info("="*60)
logger.info("Available endpoints:")
logger.info("  - GET /api/health - Public health check (minimal)")
logger.info("  - GET /api/health/detailed - Detailed health")
logger.info("")
logger.info("WFS proxy (7 endpoints):")
logger.info("  - GET /api/wfs/getAllFeatures - Features in bbox (GML + KML)")
logger.info("  - GET /api/wfs/requestFeature - Feature by id")
logger.info("  - GET /api/wfs/requestFeatureByProperty - Features by property value")
logger.info("  - GET /api/wfs/getFeatureCount - Feature count in bbox")
logger.info("  - GET /api/wfs/featurePopup - Feature HTML popup")
logger.info("  - GET /api/wfs/getFeatureAbstract - Feature type abstract")
logger.info("  - GET /api/wfs/getFeatureMetadataURL - Feature type metadata URL")
logger.info("")
logger.info("Catalogue (1 endpoint):")
logger.info("  - GET /api/csw/getRecords - Parsed CSW records")
logger.info("="*60)
