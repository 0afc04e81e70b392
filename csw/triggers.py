# ============================================================================
# CLAUDE CONTEXT - CATALOGUE TRIGGERS
# ============================================================================
# STATUS: Standalone HTTP Triggers - CSW listing endpoint
# PURPOSE: Azure Functions HTTP trigger returning parsed catalogue records
# EXPORTS: get_csw_triggers, CatalogueQueryParameters
# INTERFACES: Azure Functions HttpRequest/HttpResponse
# PYDANTIC_MODELS: CatalogueQueryParameters
# DEPENDENCIES: azure.functions, pydantic, logging
# PATTERNS: Trigger Pattern, Factory Pattern (get_csw_triggers)
# ============================================================================

"""
Catalogue HTTP Triggers

- GET /api/csw/getRecords?cswUrl=&startPosition=&maxRecords=
"""

import azure.functions as func
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from config import get_app_config
from errors import PortalError
from infrastructure.transport import HttpTransport
from infrastructure.triggers import BasePortalTrigger

from .service import CatalogueService

logger = logging.getLogger(__name__)


class CatalogueQueryParameters(BaseModel):
    cswUrl: str = Field(min_length=1, description="CSW endpoint URL")
    startPosition: int = Field(default=1, ge=1)
    maxRecords: Optional[int] = Field(default=None, ge=1, le=1000)

    @field_validator("cswUrl")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("cswUrl must be an http(s) URL")
        return v


def get_csw_triggers(service: Optional[CatalogueService] = None) -> List[Dict[str, Any]]:
    """
    Get list of catalogue trigger configurations for function_app.py.

    Returns:
        List of dicts with keys: route, methods, handler
    """
    return [
        {
            'route': 'csw/getRecords',
            'methods': ['GET'],
            'handler': CatalogueRecordsTrigger(service).handle
        }
    ]


class CatalogueRecordsTrigger(BasePortalTrigger):
    """
    One page of parsed catalogue records.

    Endpoint: GET /api/csw/getRecords
    """

    def __init__(self, service: Optional[CatalogueService] = None):
        self._service = service

    @property
    def service(self) -> CatalogueService:
        if self._service is None:
            config = get_app_config()
            self._service = CatalogueService(
                HttpTransport(timeout=config.http_timeout_seconds, user_agent=config.user_agent)
            )
        return self._service

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        try:
            params = self._parse_params(req, CatalogueQueryParameters)
        except ValidationError as e:
            return self._validation_response(e)

        try:
            page = self.service.get_records(
                params.cswUrl,
                start_position=params.startPosition,
                max_records=params.maxRecords
            )
        except PortalError as e:
            return self._portal_error_response(e, params.cswUrl)

        return self._success_response(page.to_dict(), msg=f"{len(page.records)} records")
