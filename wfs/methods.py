"""
WFS request builders.

Each builder returns a WFSRequest describing exactly what will be sent, so
the dispatcher can hand the same description back to the caller in
TransformedResponse.method for diagnostics or replay.

GetFeature queries go out as POST (filters can be long); feature-id
lookups, capabilities and resolvable references are plain GETs.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlencode
from xml.sax.saxutils import quoteattr

from infrastructure.addressing import NAMESPACES

from .filters import QueryFilter

DEFAULT_VERSION = "1.1.0"

GET_FEATURE_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<wfs:GetFeature service="WFS" version={version}{max_features}{result_type} xmlns:wfs="{wfs_ns}" xmlns:ogc="{ogc_ns}" xmlns:gml="{gml_ns}">
  <wfs:Query typeName={type_name}{srs_name}>{filter}</wfs:Query>
</wfs:GetFeature>"""


@dataclass
class WFSRequest:
    """One outbound request, as sent."""
    method: str
    url: str
    params: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    def describe(self) -> str:
        """Verb, full URL and body on one string."""
        target = self.url
        if self.params:
            separator = "&" if "?" in self.url else "?"
            target = f"{self.url}{separator}{urlencode(self.params)}"
        if self.body:
            return f"{self.method} {target}\n{self.body}"
        return f"{self.method} {target}"


def get_feature_request(
    endpoint: str,
    feature_type: str,
    query_filter: QueryFilter,
    max_features: int = 0,
    srs_name: Optional[str] = None,
    hits_only: bool = False,
    version: str = DEFAULT_VERSION
) -> WFSRequest:
    """
    POST GetFeature.

    Args:
        max_features: Result cap; 0 or less sends no cap
        srs_name: Output CRS, omitted when None
        hits_only: resultType="hits" (count only)
    """
    body = GET_FEATURE_TEMPLATE.format(
        version=quoteattr(version),
        max_features=f" maxFeatures={quoteattr(str(max_features))}" if max_features and max_features > 0 else "",
        result_type=' resultType="hits"' if hits_only else "",
        wfs_ns=NAMESPACES["wfs"],
        ogc_ns=NAMESPACES["ogc"],
        gml_ns=NAMESPACES["gml"],
        type_name=quoteattr(feature_type),
        srs_name=f" srsName={quoteattr(srs_name)}" if srs_name else "",
        filter=query_filter.to_xml()
    )
    return WFSRequest(method="POST", url=endpoint, body=body)


def get_feature_by_id_request(
    endpoint: str,
    feature_type: str,
    feature_id: str,
    version: str = DEFAULT_VERSION
) -> WFSRequest:
    """GET GetFeature with a native featureID parameter."""
    return WFSRequest(
        method="GET",
        url=endpoint,
        params={
            "service": "WFS",
            "version": version,
            "request": "GetFeature",
            "typeName": feature_type,
            "featureID": feature_id,
        }
    )


def get_capabilities_request(endpoint: str, version: str = DEFAULT_VERSION) -> WFSRequest:
    return WFSRequest(
        method="GET",
        url=endpoint,
        params={"service": "WFS", "version": version, "request": "GetCapabilities"}
    )


def resolve_request(url: str) -> WFSRequest:
    """GET a URL that resolves directly to a WFS response (e.g. a resolvable URN)."""
    return WFSRequest(method="GET", url=url)
