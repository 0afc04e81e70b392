# ============================================================================
# CLAUDE CONTEXT - WFS FILTER BUILDER
# ============================================================================
# STATUS: WFS Layer - OGC Filter Encoding 1.1 construction
# PURPOSE: All-records, bounding-box and property-equality filters per dialect
# EXPORTS: FilterKind, QueryFilter, FilterBuilder, parse_bounding_box_param,
#          build_filter, parse_envelope
# PYDANTIC_MODELS: CornerBoundingBox, BoundsBoundingBox (client bbox encodings)
# DEPENDENCIES: pydantic, lxml (via infrastructure.addressing)
# PATTERNS: Immutable value objects, dialect lookup table
# ============================================================================

"""
WFS Filter Builder

Three filter kinds:
    ALL              - no ogc:Filter at all, the service returns everything
    BBOX             - ogc:BBOX around a gml:Envelope (GeoServer) or gml:Box (ArcGIS)
    PROPERTY_EQUALS  - ogc:PropertyIsEqualTo

Clients send their bounding box pre-serialized as JSON. If that JSON cannot
be read the request still goes ahead unfiltered: build_filter() falls back to
ALL rather than failing. An unreadable spatial constraint should never block
access to the data itself.

Usage:
    builder = FilterBuilder()
    query_filter = builder.bounding_box(extent, DialectTag.GEOSERVER)
    xml = query_filter.to_xml()
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
from xml.sax.saxutils import escape

from pydantic import BaseModel, Field, ValidationError

from csw.extent import GeographicExtent
from errors import DocumentAddressError, InvalidFilterError, MalformedExtentError
from infrastructure.addressing import NAMESPACES, DocumentNode

from .dialect import DialectTag, EnvelopeSyntax, rules_for

logger = logging.getLogger(__name__)

_FILTER_OPEN = f'<ogc:Filter xmlns:ogc="{NAMESPACES["ogc"]}" xmlns:gml="{NAMESPACES["gml"]}">'
_FILTER_CLOSE = "</ogc:Filter>"

_WGS84_SUFFIXES = ("4326", "CRS84")


def _fmt(value: float) -> str:
    return "%.15g" % value


def _is_wgs84(crs: Optional[str]) -> bool:
    return crs is None or crs.upper().endswith(_WGS84_SUFFIXES)


# ============================================================================
# QUERY FILTER
# ============================================================================

class FilterKind(Enum):
    ALL = "all"
    BBOX = "bbox"
    PROPERTY_EQUALS = "propertyEquals"


@dataclass(frozen=True)
class QueryFilter:
    """
    One filter, ready to render in its target dialect.
    """
    kind: FilterKind
    extent: Optional[GeographicExtent] = None
    dialect: Optional[DialectTag] = None
    property_name: Optional[str] = None
    value: Optional[str] = None

    def to_xml(self) -> str:
        """
        Render as an ogc:Filter element.

        Returns:
            Filter XML, or "" for FilterKind.ALL
        """
        if self.kind is FilterKind.ALL:
            return ""
        if self.kind is FilterKind.BBOX:
            return f"{_FILTER_OPEN}<ogc:BBOX>{self._envelope_xml()}</ogc:BBOX>{_FILTER_CLOSE}"
        return (
            f'{_FILTER_OPEN}<ogc:PropertyIsEqualTo matchCase="true">'
            f"<ogc:PropertyName>{escape(self.property_name)}</ogc:PropertyName>"
            f"<ogc:Literal>{escape(self.value)}</ogc:Literal>"
            f"</ogc:PropertyIsEqualTo>{_FILTER_CLOSE}"
        )

    def _envelope_xml(self) -> str:
        rules = rules_for(self.dialect)
        box = self.extent
        srs = rules.srs_name if _is_wgs84(box.crs) else box.crs
        lower = rules.axis_order.order(box.west, box.south)
        upper = rules.axis_order.order(box.east, box.north)

        if rules.envelope is EnvelopeSyntax.GML3_ENVELOPE:
            return (
                f'<gml:Envelope srsName="{escape(srs)}">'
                f"<gml:lowerCorner>{_fmt(lower[0])} {_fmt(lower[1])}</gml:lowerCorner>"
                f"<gml:upperCorner>{_fmt(upper[0])} {_fmt(upper[1])}</gml:upperCorner>"
                f"</gml:Envelope>"
            )
        return (
            f'<gml:Box srsName="{escape(srs)}">'
            f"<gml:coordinates>{_fmt(lower[0])},{_fmt(lower[1])} {_fmt(upper[0])},{_fmt(upper[1])}</gml:coordinates>"
            f"</gml:Box>"
        )


# ============================================================================
# FILTER BUILDER
# ============================================================================

class FilterBuilder:
    """
    Builds QueryFilter instances.
    """

    def all_records(self) -> QueryFilter:
        return QueryFilter(kind=FilterKind.ALL)

    def bounding_box(self, box: GeographicExtent, dialect: DialectTag) -> QueryFilter:
        """Intersects-envelope filter, coordinates ordered for dialect."""
        if box is None:
            raise InvalidFilterError("Bounding box filter requires an extent")
        return QueryFilter(kind=FilterKind.BBOX, extent=box, dialect=dialect)

    def property_equals(self, property_name: str, value: str) -> QueryFilter:
        """
        Exact-match filter.

        Raises:
            InvalidFilterError: property_name is empty or blank
        """
        if not property_name or not property_name.strip():
            raise InvalidFilterError("Property filter requires a property name")
        return QueryFilter(
            kind=FilterKind.PROPERTY_EQUALS,
            property_name=property_name.strip(),
            value="" if value is None else str(value)
        )


# ============================================================================
# CLIENT BOUNDING BOX ENCODINGS
# ============================================================================

class CornerBoundingBox(BaseModel):
    """{"bboxSrs": ..., "lowerCornerPoints": [lon, lat], "upperCornerPoints": [lon, lat]}"""
    bboxSrs: Optional[str] = None
    lowerCornerPoints: List[float] = Field(min_length=2, max_length=2)
    upperCornerPoints: List[float] = Field(min_length=2, max_length=2)

    def to_extent(self) -> GeographicExtent:
        return GeographicExtent(
            west=self.lowerCornerPoints[0],
            south=self.lowerCornerPoints[1],
            east=self.upperCornerPoints[0],
            north=self.upperCornerPoints[1],
            crs=self.bboxSrs
        )


class BoundsBoundingBox(BaseModel):
    """ISO style named bounds."""
    westBoundLongitude: float
    eastBoundLongitude: float
    southBoundLatitude: float
    northBoundLatitude: float
    crs: Optional[str] = None

    def to_extent(self) -> GeographicExtent:
        return GeographicExtent(
            west=self.westBoundLongitude,
            east=self.eastBoundLongitude,
            south=self.southBoundLatitude,
            north=self.northBoundLatitude,
            crs=self.crs
        )


def parse_bounding_box_param(encoded: Optional[str]) -> Optional[GeographicExtent]:
    """
    Read a client supplied bounding box.

    Returns:
        GeographicExtent, or None if encoded is empty or unreadable
    """
    if not encoded or not encoded.strip():
        return None

    try:
        data = json.loads(encoded)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        if "lowerCornerPoints" in data:
            return CornerBoundingBox.model_validate(data).to_extent()
        return BoundsBoundingBox.model_validate(data).to_extent()
    except (ValueError, ValidationError, MalformedExtentError) as e:
        logger.debug(f"Ignoring unparseable bbox {encoded[:200]!r}: {e}")
        return None


def build_filter(
    encoded_bbox: Optional[str],
    dialect: DialectTag,
    builder: Optional[FilterBuilder] = None
) -> QueryFilter:
    """Bounding box filter from the client encoding, all records if unreadable."""
    builder = builder or FilterBuilder()
    extent = parse_bounding_box_param(encoded_bbox)
    if extent is None:
        return builder.all_records()
    return builder.bounding_box(extent, dialect)


# ============================================================================
# REVERSE PARSER
# ============================================================================

def _pair(text: str, separator: Optional[str]) -> List[float]:
    values = [float(v) for v in text.strip().split(separator)]
    if len(values) != 2:
        raise ValueError(f"expected two coordinates in {text!r}")
    return values


def parse_envelope(filter_xml: str, dialect: DialectTag) -> GeographicExtent:
    """
    Logical extent of a bounding box filter written for dialect.

    Raises:
        InvalidFilterError: Not a bounding box filter of that dialect
    """
    rules = rules_for(dialect)
    try:
        root = DocumentNode.from_string(filter_xml)
        if rules.envelope is EnvelopeSyntax.GML3_ENVELOPE:
            envelope = root.first(".//gml:Envelope")
            lower = _pair(envelope.first_text("gml:lowerCorner"), None)
            upper = _pair(envelope.first_text("gml:upperCorner"), None)
        else:
            envelope = root.first(".//gml:Box")
            lower_text, upper_text = envelope.first_text("gml:coordinates").split()
            lower = _pair(lower_text, ",")
            upper = _pair(upper_text, ",")
        west, south = rules.axis_order.unorder(*lower)
        east, north = rules.axis_order.unorder(*upper)
        srs = envelope.attribute("srsName")
        return GeographicExtent(
            west=west,
            east=east,
            south=south,
            north=north,
            crs=None if srs == rules.srs_name else srs
        )
    except (DocumentAddressError, AttributeError, ValueError, MalformedExtentError) as e:
        raise InvalidFilterError(f"Not a {dialect.value} bounding box filter: {e}")
