"""
Geographic extent value type.

ISO 19139 records carry their footprint as a gmd:EX_GeographicBoundingBox
with four gco:Decimal bounds. A bounding box that cannot be read is a
failure for the extent only, never for the record holding it.
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from errors import MalformedExtentError
from infrastructure.addressing import DocumentNode


_BOUND_PATHS = {
    "west": "gmd:westBoundLongitude/gco:Decimal",
    "east": "gmd:eastBoundLongitude/gco:Decimal",
    "south": "gmd:southBoundLatitude/gco:Decimal",
    "north": "gmd:northBoundLatitude/gco:Decimal",
}


def _parse_coordinate(name: str, raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        raise MalformedExtentError(f"Bounding box is missing '{name}'", bound=name)
    try:
        value = float(raw.strip())
    except ValueError:
        raise MalformedExtentError(f"Bounding box '{name}' is not a number: {raw!r}", bound=name)
    if math.isnan(value) or math.isinf(value):
        raise MalformedExtentError(f"Bounding box '{name}' is not finite: {raw!r}", bound=name)
    return value


@dataclass(frozen=True)
class GeographicExtent:
    """
    Normalised bounding box.

    west > east is permitted (extent crosses the antimeridian);
    south > north is not.
    """
    west: float
    east: float
    south: float
    north: float
    crs: Optional[str] = None

    def __post_init__(self):
        if self.south > self.north:
            raise MalformedExtentError(
                f"South bound {self.south} is greater than north bound {self.north}",
                south=self.south,
                north=self.north
            )

    @classmethod
    def from_bounding_box_node(cls, node: DocumentNode) -> "GeographicExtent":
        """
        Build an extent from a gmd:EX_GeographicBoundingBox node.

        Raises:
            MalformedExtentError: Missing or non-numeric bound, or south > north
        """
        bounds = {
            name: _parse_coordinate(name, node.first_text(path))
            for name, path in _BOUND_PATHS.items()
        }
        return cls(**bounds)

    @property
    def spans_antimeridian(self) -> bool:
        return self.west > self.east

    def as_bbox(self) -> List[float]:
        """[west, south, east, north], the order used by GeoJSON and OGC API bbox."""
        return [self.west, self.south, self.east, self.north]
