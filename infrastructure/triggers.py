# ============================================================================
# CLAUDE CONTEXT - PORTAL TRIGGER BASE
# ============================================================================
# STATUS: Core Infrastructure - Shared HTTP trigger behaviour
# PURPOSE: Parameter validation and the {success, data, msg} JSON envelope
# EXPORTS: BasePortalTrigger
# INTERFACES: Azure Functions HttpRequest/HttpResponse
# DEPENDENCIES: azure.functions, pydantic, json, logging
# PATTERNS: Template base class for csw/ and wfs/ triggers
# ============================================================================

"""
Portal Trigger Base

Every portal endpoint answers with the same envelope the map client expects:

    {"success": true,  "data": {...}, "msg": "..."}
    {"success": false, "data": null,  "msg": "generic failure text"}

Failure messages are fixed strings per error family. Upstream documents and
exception text are logged, never returned.
"""

import azure.functions as func
import json
import logging
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from errors import InvalidFilterError, PortalError, TransformError, UpstreamError
from util_logger import ComponentType, LogContext, LoggerFactory

logger = logging.getLogger(__name__)

# Built once; per-request context goes in each record
failure_logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "PortalTrigger")

ParamsT = TypeVar("ParamsT", bound=BaseModel)

# Client-facing text per error family
FAILURE_MESSAGES = {
    UpstreamError: "Error communicating with the remote service",
    TransformError: "Unable to convert the remote service response",
    InvalidFilterError: "Invalid query arguments",
}
DEFAULT_FAILURE_MESSAGE = "Unable to process request"


class BasePortalTrigger:
    """
    Base class for portal HTTP triggers.

    Subclasses implement handle(req) and use the helpers below for
    parameter parsing and responses.
    """

    def _parse_params(self, req: func.HttpRequest, model: Type[ParamsT]) -> ParamsT:
        """
        Validate query parameters against a pydantic model.

        Raises:
            ValidationError: Missing or invalid parameters
        """
        params = {k: v for k, v in req.params.items() if v != ""}
        return model.model_validate(params)

    def _json_response(self, body: Dict[str, Any], status_code: int = 200) -> func.HttpResponse:
        return func.HttpResponse(
            body=json.dumps(body, indent=2),
            status_code=status_code,
            mimetype="application/json"
        )

    def _success_response(self, data: Any, msg: str = "") -> func.HttpResponse:
        return self._json_response({"success": True, "data": data, "msg": msg})

    def _failure_response(self, msg: str, status_code: int = 500) -> func.HttpResponse:
        return self._json_response({"success": False, "data": None, "msg": msg}, status_code)

    def _validation_response(self, error: ValidationError) -> func.HttpResponse:
        """400 listing the offending parameter names."""
        fields = sorted({str(e["loc"][0]) for e in error.errors() if e.get("loc")})
        logger.info(f"Rejected request parameters: {fields}")
        return self._failure_response(f"Missing or invalid parameters: {', '.join(fields)}", status_code=400)

    def _portal_error_response(
        self,
        error: PortalError,
        endpoint: Optional[str] = None,
        feature_type: Optional[str] = None
    ) -> func.HttpResponse:
        """
        Log a typed failure and answer with its generic message.

        InvalidFilterError is the caller's fault (400); everything else is 500.
        """
        dimensions = {
            **LogContext(endpoint=endpoint, feature_type=feature_type).to_dict(),
            "trigger": type(self).__name__,
            "error_code": error.code
        }
        failure_logger.warning(
            f"{type(error).__name__} for endpoint={endpoint} featureType={feature_type}: {error.message}",
            extra={"custom_dimensions": dimensions}
        )
        failure_logger.debug("Failure detail", exc_info=error, extra={"custom_dimensions": dimensions})

        status_code = 400 if isinstance(error, InvalidFilterError) else 500
        message = DEFAULT_FAILURE_MESSAGE
        for error_type, text in FAILURE_MESSAGES.items():
            if isinstance(error, error_type):
                message = text
                break
        return self._failure_response(message, status_code)
