# ============================================================================
# CLAUDE CONTEXT - WFS PROXY MODELS
# ============================================================================
# STATUS: WFS Layer - Response envelopes and request parameter models
# PURPOSE: TransformedResponse envelope, validated trigger query parameters
# EXPORTS: TransformedResponse, FeatureQueryParameters, FeatureIdParameters,
#          PropertyQueryParameters, CapabilitiesParameters
# PYDANTIC_MODELS: *Parameters classes
# DEPENDENCIES: pydantic, dataclasses
# ============================================================================

"""
WFS Proxy Models

TransformedResponse is what every feature operation returns: the raw
upstream document, the transformed output and a description of the request
that produced them.

The *Parameters models validate query strings in the trigger layer; field
names follow the portal's existing client parameter names.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field, field_validator


@dataclass
class TransformedResponse:
    """Raw upstream body, transformed output, request description."""
    source_document: str
    transformed: str
    method: str


class _ServiceParameters(BaseModel):
    serviceUrl: str = Field(min_length=1, description="WFS endpoint URL")
    typeName: str = Field(min_length=1, description="WFS feature type name")

    @field_validator("serviceUrl")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("serviceUrl must be an http(s) URL")
        return v


class FeatureQueryParameters(_ServiceParameters):
    """getAllFeatures / getFeatureCount."""
    bbox: Optional[str] = Field(default=None, description="JSON encoded bounding box")
    maxFeatures: int = Field(default=0, ge=0, description="Result cap, 0 for unlimited")


class FeatureIdParameters(_ServiceParameters):
    """requestFeature."""
    featureId: str = Field(min_length=1)


class PropertyQueryParameters(_ServiceParameters):
    """requestFeatureByProperty."""
    property: str = Field(min_length=1)
    value: str = ""


class CapabilitiesParameters(BaseModel):
    """getFeatureAbstract / getFeatureMetadataURL."""
    serviceUrl: str = Field(min_length=1)
    name: str = Field(min_length=1)
