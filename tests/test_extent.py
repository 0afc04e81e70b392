"""GeographicExtent construction and bounding box parsing."""

import math

import pytest

from csw.extent import GeographicExtent
from errors import MalformedExtentError
from infrastructure.addressing import DocumentNode
from tests.factories.record_factories import GCO_NS, GMD_NS, make_bounding_box


def _bbox_node(west, east, south, north) -> DocumentNode:
    xml = make_bounding_box(west, east, south, north).replace(
        "<gmd:EX_GeographicBoundingBox>",
        f'<gmd:EX_GeographicBoundingBox xmlns:gmd="{GMD_NS}" xmlns:gco="{GCO_NS}">',
        1
    )
    return DocumentNode.from_string(xml)


class TestConstruction:

    def test_valid_extent(self):
        extent = GeographicExtent(west=110, east=155, south=-45, north=-10)
        assert extent.as_bbox() == [110, -45, 155, -10]
        assert extent.crs is None

    def test_south_greater_than_north_rejected(self):
        with pytest.raises(MalformedExtentError):
            GeographicExtent(west=110, east=155, south=-10, north=-45)

    def test_equal_south_north_allowed(self):
        extent = GeographicExtent(west=0, east=1, south=5, north=5)
        assert extent.south == extent.north

    def test_antimeridian(self):
        assert GeographicExtent(west=170, east=-170, south=-10, north=10).spans_antimeridian
        assert not GeographicExtent(west=110, east=155, south=-45, north=-10).spans_antimeridian

    def test_frozen(self):
        extent = GeographicExtent(west=0, east=1, south=0, north=1)
        with pytest.raises(AttributeError):
            extent.west = 5


class TestFromBoundingBoxNode:

    def test_reads_all_bounds(self):
        extent = GeographicExtent.from_bounding_box_node(_bbox_node(110, 155, -45, -10))
        assert (extent.west, extent.east, extent.south, extent.north) == (110, 155, -45, -10)

    def test_decimal_text(self):
        extent = GeographicExtent.from_bounding_box_node(_bbox_node("112.5", "153.25", "-43.75", "-9.5"))
        assert math.isclose(extent.east, 153.25)

    @pytest.mark.parametrize("bounds", [
        (None, 155, -45, -10),
        (110, 155, -45, None),
        ("abc", 155, -45, -10),
        (110, "NaN", -45, -10),
        (110, 155, "-inf", -10),
        (110, 155, "", -10),
    ], ids=["missing-west", "missing-north", "not-a-number", "nan", "infinite", "blank"])
    def test_malformed_bounds(self, bounds):
        with pytest.raises(MalformedExtentError):
            GeographicExtent.from_bounding_box_node(_bbox_node(*bounds))

    def test_inverted_latitudes(self):
        with pytest.raises(MalformedExtentError):
            GeographicExtent.from_bounding_box_node(_bbox_node(110, 155, -10, -45))
