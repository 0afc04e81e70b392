"""
WFS server dialects.

GeoServer and ArcGIS Server both speak WFS 1.1 but disagree on how a
bounding box must be written: GeoServer reads EPSG:4326 URNs in
latitude/longitude order inside a GML3 envelope, ArcGIS wants
longitude/latitude in a GML2 box. The dialect is guessed from the
endpoint URL alone and every dialect difference lives in DIALECT_RULES.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .config import get_wfs_config


class DialectTag(Enum):
    GEOSERVER = "geoserver"
    ARCGIS = "arcgis"


class AxisOrder(Enum):
    LAT_LON = "lat/lon"
    LON_LAT = "lon/lat"

    def order(self, lon: float, lat: float) -> Tuple[float, float]:
        """Coordinate pair in this axis order."""
        return (lat, lon) if self is AxisOrder.LAT_LON else (lon, lat)

    def unorder(self, first: float, second: float) -> Tuple[float, float]:
        """(lon, lat) from a pair written in this axis order."""
        return (second, first) if self is AxisOrder.LAT_LON else (first, second)


class EnvelopeSyntax(Enum):
    GML3_ENVELOPE = "gml:Envelope"   # gml:lowerCorner / gml:upperCorner
    GML2_BOX = "gml:Box"             # gml:coordinates "x,y x,y"


@dataclass(frozen=True)
class DialectRules:
    axis_order: AxisOrder
    envelope: EnvelopeSyntax
    srs_name: str
    native_feature_id: bool
    id_property: Optional[str] = None


DIALECT_RULES = {
    DialectTag.GEOSERVER: DialectRules(
        axis_order=AxisOrder.LAT_LON,
        envelope=EnvelopeSyntax.GML3_ENVELOPE,
        srs_name="urn:x-ogc:def:crs:EPSG:4326",
        native_feature_id=True
    ),
    DialectTag.ARCGIS: DialectRules(
        axis_order=AxisOrder.LON_LAT,
        envelope=EnvelopeSyntax.GML2_BOX,
        srs_name="EPSG:4326",
        native_feature_id=False,
        id_property="OBJECTID"
    ),
}


def rules_for(dialect: DialectTag) -> DialectRules:
    return DIALECT_RULES[dialect]


def negotiate(endpoint: str, arcgis_marker: Optional[str] = None) -> DialectTag:
    """Dialect of the service at endpoint, from the URL alone."""
    marker = (arcgis_marker or get_wfs_config().arcgis_url_marker).lower()
    if marker in (endpoint or "").lower():
        return DialectTag.ARCGIS
    return DialectTag.GEOSERVER
