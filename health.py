# ============================================================================
# CLAUDE CONTEXT - HEALTH CHECK MODULE
# ============================================================================
# STATUS: Core Infrastructure - Health Monitoring
# PURPOSE: Liveness and readiness checks for the portal proxy
# EXPORTS: get_public_health, get_detailed_health, HealthStatus
# DEPENDENCIES: config, util_logger, lxml (stylesheet check)
# PATTERNS: Two-tier health checks (public/detailed)
# ============================================================================

"""
Health Check Module

1. Public Health (/api/health):
   - Status and timestamp only
   - Always returns 200 (status in body indicates health)

2. Detailed Health (/api/health/detailed):
   - Configuration validity (critical)
   - Display stylesheets compile (critical)
   - Trigger modules import (non-critical)
   - Capabilities cache statistics
   - Returns 503 if unhealthy

No remote service is contacted: catalogues and feature services belong to
third parties and their availability is not ours to report.
"""

import time
import uuid
from enum import Enum
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Optional, Dict, Any

from pydantic import ValidationError

from config import get_app_config
from errors import TransformError
from util_logger import LoggerFactory, ComponentType

# Create module logger
logger = LoggerFactory.create_logger(ComponentType.SERVICE, "HealthService")

APP_NAME = "geoportal-proxy"
APP_DESCRIPTION = "CSW record extraction & WFS query proxy"


class HealthStatus(str, Enum):
    """Health status values."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"      # Non-critical components failing
    UNHEALTHY = "unhealthy"    # Critical components failing


@dataclass
class CheckResult:
    """Result of a single health check."""
    status: str              # "pass" or "fail"
    latency_ms: float
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {
            "status": self.status,
            "latency_ms": round(self.latency_ms, 2),
            "message": self.message
        }
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Health Check Functions
# ============================================================================

def check_configuration() -> CheckResult:
    """Application and WFS configuration load and validate."""
    start_time = time.perf_counter()
    try:
        from wfs.config import get_wfs_config
        app_config = get_app_config()
        wfs_config = get_wfs_config()
    except (ValidationError, ValueError) as e:
        return CheckResult(
            status="fail",
            latency_ms=(time.perf_counter() - start_time) * 1000,
            message=f"Invalid configuration: {e}"
        )

    return CheckResult(
        status="pass",
        latency_ms=(time.perf_counter() - start_time) * 1000,
        message="Configuration valid",
        details={
            "http_timeout_seconds": app_config.http_timeout_seconds,
            "wfs_version": wfs_config.wfs_version,
            "capabilities_ttl_seconds": wfs_config.capabilities_ttl_seconds
        }
    )


def check_stylesheets() -> CheckResult:
    """Both display stylesheets parse and compile."""
    from wfs.transform import TransformFormat, XsltTransformer

    start_time = time.perf_counter()
    transformer = XsltTransformer()
    failures = {}
    for target in TransformFormat:
        try:
            transformer._get_xslt(target)
        except TransformError as e:
            failures[target.value] = e.message

    latency_ms = (time.perf_counter() - start_time) * 1000
    if failures:
        return CheckResult(status="fail", latency_ms=latency_ms, message="Stylesheet errors", details=failures)
    return CheckResult(status="pass", latency_ms=latency_ms, message="Stylesheets compiled")


def check_api_modules() -> CheckResult:
    """
    Trigger modules import and register.

    Non-critical - failure means DEGRADED status.
    """
    start_time = time.perf_counter()

    wfs_status = {"available": False, "endpoints": 0}
    csw_status = {"available": False, "endpoints": 0}

    try:
        from wfs import get_wfs_triggers
        wfs_status = {"available": True, "endpoints": len(get_wfs_triggers())}
    except ImportError as e:
        wfs_status["error"] = str(e)

    try:
        from csw.triggers import get_csw_triggers
        csw_status = {"available": True, "endpoints": len(get_csw_triggers())}
    except ImportError as e:
        csw_status["error"] = str(e)

    latency_ms = (time.perf_counter() - start_time) * 1000

    if wfs_status["available"] and csw_status["available"]:
        status, message = "pass", "All modules loaded"
    elif wfs_status["available"] or csw_status["available"]:
        status, message = "pass", "Some modules unavailable"
    else:
        status, message = "fail", "No API modules available"

    return CheckResult(
        status=status,
        latency_ms=latency_ms,
        message=message,
        details={"wfs": wfs_status, "csw": csw_status}
    )


# ============================================================================
# Main Entry Points
# ============================================================================

def get_public_health() -> Dict[str, Any]:
    """
    Minimal health status for the public endpoint.

    Returns:
        Dict with status and timestamp only
    """
    config_result = check_configuration()
    status = HealthStatus.HEALTHY if config_result.status == "pass" else HealthStatus.UNHEALTHY

    logger.info("Public health check completed", extra={
        'custom_dimensions': {'status': status.value, 'check_type': 'public'}
    })

    return {
        "status": status.value,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


def get_detailed_health() -> Dict[str, Any]:
    """
    Detailed health status for probes and operations.

    Returns:
        Dict with per-check results and overall status
    """
    from wfs.capabilities import get_capabilities_cache_stats

    start_time = time.perf_counter()
    request_id = str(uuid.uuid4())[:8]

    checks = {}
    critical_failures = []
    non_critical_failures = []

    for name, check, critical in (
        ("configuration", check_configuration, True),
        ("stylesheets", check_stylesheets, True),
        ("api_modules", check_api_modules, False),
    ):
        result = check()
        checks[name] = result.to_dict()
        if result.status == "fail":
            (critical_failures if critical else non_critical_failures).append(name)

    if critical_failures:
        status = HealthStatus.UNHEALTHY
    elif non_critical_failures:
        status = HealthStatus.DEGRADED
    else:
        status = HealthStatus.HEALTHY

    total_duration = (time.perf_counter() - start_time) * 1000

    logger.info("Detailed health check completed", extra={
        'custom_dimensions': {
            'status': status.value,
            'duration_ms': round(total_duration, 2),
            'check_type': 'detailed',
            'request_id': request_id,
            'critical_failures': critical_failures,
            'non_critical_failures': non_critical_failures
        }
    })

    return {
        "status": status.value,
        "app": APP_NAME,
        "description": APP_DESCRIPTION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
        "checks": checks,
        "capabilities_cache": get_capabilities_cache_stats(),
        "total_duration_ms": round(total_duration, 2)
    }
