"""
WFSQueryService dispatch.

The transport is a RecordingTransport, so every assertion about what was
sent is made against the exact request the service produced.
"""

import json
import logging

import pytest
from lxml import etree

from csw.extent import GeographicExtent
from errors import InvalidFilterError, TransformError, UpstreamError
from infrastructure.addressing import DocumentNode
from infrastructure.transport import TransportResponse
from wfs.capabilities import CapabilitiesService, TTLCache
from wfs.filters import FilterBuilder, parse_envelope
from wfs.dialect import DialectTag
from wfs.service import DispatchState, WFSQueryService
from wfs.transform import TransformFormat, Transformer

from tests.factories.service_factories import ARCGIS_URL, GEOSERVER_URL

BBOX = json.dumps({"lowerCornerPoints": [110, -45], "upperCornerPoints": [155, -10]})
EXTENT = GeographicExtent(west=110, east=155, south=-45, north=-10)


class FailingTransformer(Transformer):

    def transform(self, raw_body, target):
        raise TransformError("stylesheet exploded", target=target.value)


@pytest.fixture
def service_logger(caplog):
    caplog.set_level(logging.DEBUG, logger="tests.wfs_service")
    return logging.getLogger("tests.wfs_service")


@pytest.fixture
def make_service(wfs_config, service_logger):
    def _make(transport, **kwargs):
        kwargs.setdefault("capabilities", CapabilitiesService(transport, wfs_config, cache=TTLCache()))
        return WFSQueryService(transport, config=wfs_config, logger=service_logger, **kwargs)
    return _make


def _sent_query(transport) -> DocumentNode:
    return DocumentNode.from_string(transport.last.body)


# ============================================================================
# query_by_filter / query_by_encoded_bbox
# ============================================================================

class TestQueryByFilter:

    def test_transformed_response(self, make_transport, xml_response, make_service, load_fixture):
        transport = make_transport(xml_response("feature_collection.xml"))
        response = make_service(transport).query_by_filter(
            GEOSERVER_URL, "gsml:Borehole", FilterBuilder().all_records()
        )

        assert response.source_document == load_fixture("feature_collection.xml")
        assert "<Placemark>" in response.transformed
        assert response.method.startswith(f"POST {GEOSERVER_URL}\n")
        assert response.method.endswith(transport.last.body)

    def test_html_target(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"))
        response = make_service(transport).query_by_filter(
            GEOSERVER_URL, "gsml:Borehole", FilterBuilder().all_records(), target=TransformFormat.HTML
        )
        assert "<table" in response.transformed

    def test_crs_default_and_override(self, make_transport, xml_response, make_service, wfs_config):
        transport = make_transport(xml_response("feature_collection.xml"), xml_response("feature_collection.xml"))
        service = make_service(transport)
        wfs_config.default_srs = "EPSG:4283"

        service.query_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records())
        assert _sent_query(transport).first("wfs:Query").attribute("srsName") == "EPSG:4283"

        service.query_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records(), crs="EPSG:3857")
        assert _sent_query(transport).first("wfs:Query").attribute("srsName") == "EPSG:3857"

    def test_dispatch_trace(self, make_transport, xml_response, make_service, caplog):
        transport = make_transport(xml_response("feature_collection.xml"))
        make_service(transport).query_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records())

        states = [
            state for record in caplog.records
            for state in DispatchState if record.getMessage().split("] ")[-1].startswith(state.name)
        ]
        assert states == [
            DispatchState.IDLE,
            DispatchState.DIALECT_NEGOTIATED,
            DispatchState.FILTER_BUILT,
            DispatchState.REQUEST_SENT,
            DispatchState.TRANSFORM_SUCCEEDED,
            DispatchState.TERMINAL,
        ]

    def test_bbox_follows_endpoint_dialect(self, make_transport, xml_response, make_service):
        geoserver_bbox = FilterBuilder().bounding_box(EXTENT, DialectTag.GEOSERVER)
        transport = make_transport(xml_response("feature_collection.xml"))
        make_service(transport).query_by_filter(ARCGIS_URL, "t", geoserver_bbox)

        query = _sent_query(transport)
        assert query.first("wfs:Query/ogc:Filter/ogc:BBOX/gml:Envelope") is None
        box = query.first("wfs:Query/ogc:Filter/ogc:BBOX/gml:Box")
        assert box.first_text("gml:coordinates") == "110,-45 155,-10"


class TestQueryByEncodedBbox:

    def test_geoserver_bbox(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"))
        make_service(transport).query_by_encoded_bbox(GEOSERVER_URL, "t", BBOX, max_features=200)

        query = _sent_query(transport)
        envelope = query.first("wfs:Query/ogc:Filter/ogc:BBOX/gml:Envelope")
        assert envelope.first_text("gml:lowerCorner") == "-45 110"
        assert query.attribute("maxFeatures") == "200"

    def test_arcgis_bbox(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"))
        make_service(transport).query_by_encoded_bbox(ARCGIS_URL, "t", BBOX)

        box = _sent_query(transport).first("wfs:Query/ogc:Filter/ogc:BBOX/gml:Box")
        assert box.first_text("gml:coordinates") == "110,-45 155,-10"

    def test_same_extent_under_both_dialects(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"), xml_response("feature_collection.xml"))
        service = make_service(transport)

        service.query_by_encoded_bbox(GEOSERVER_URL, "t", BBOX)
        geoserver_filter = transport.calls[0].body
        service.query_by_encoded_bbox(ARCGIS_URL, "t", BBOX)
        arcgis_filter = transport.calls[1].body

        geoserver_xml = DocumentNode.from_string(geoserver_filter).first("wfs:Query/ogc:Filter")
        arcgis_xml = DocumentNode.from_string(arcgis_filter).first("wfs:Query/ogc:Filter")
        assert parse_envelope(etree.tostring(geoserver_xml.element), DialectTag.GEOSERVER) == \
            parse_envelope(etree.tostring(arcgis_xml.element), DialectTag.ARCGIS)

    def test_unparseable_bbox_queries_all_records(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"))
        response = make_service(transport).query_by_encoded_bbox(GEOSERVER_URL, "t", "{broken")

        assert _sent_query(transport).first("wfs:Query/ogc:Filter") is None
        assert response.transformed


# ============================================================================
# query_by_feature_id / query_by_property_fallback
# ============================================================================

class TestQueryByFeatureId:

    def test_geoserver_native_lookup(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"))
        response = make_service(transport).query_by_feature_id(GEOSERVER_URL, "gsml:Borehole", "gsml.borehole.1001")

        assert transport.last.method == "GET"
        assert transport.last.params["featureID"] == "gsml.borehole.1001"
        assert "featureID=gsml.borehole.1001" in response.method

    def test_arcgis_objectid_filter(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"))
        make_service(transport).query_by_feature_id(ARCGIS_URL, "Geology:Boreholes", "Boreholes.42")

        comparison = _sent_query(transport).first("wfs:Query/ogc:Filter/ogc:PropertyIsEqualTo")
        assert transport.last.method == "POST"
        assert comparison.first_text("ogc:PropertyName") == "OBJECTID"
        assert comparison.first_text("ogc:Literal") == "42"

    @pytest.mark.parametrize("feature_id", ["", "  ", None])
    def test_empty_id(self, make_transport, make_service, feature_id):
        transport = make_transport()
        with pytest.raises(InvalidFilterError):
            make_service(transport).query_by_feature_id(GEOSERVER_URL, "t", feature_id)
        assert transport.calls == []


class TestQueryByPropertyFallback:

    def test_equality_filter(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"))
        make_service(transport).query_by_property_fallback(GEOSERVER_URL, "gsml:Borehole", "gsml:name", "BH-1001")

        comparison = _sent_query(transport).first("wfs:Query/ogc:Filter/ogc:PropertyIsEqualTo")
        assert comparison.first_text("ogc:PropertyName") == "gsml:name"
        assert comparison.first_text("ogc:Literal") == "BH-1001"

    def test_blank_property(self, make_transport, make_service):
        with pytest.raises(InvalidFilterError):
            make_service(make_transport()).query_by_property_fallback(GEOSERVER_URL, "t", " ", "x")


# ============================================================================
# count_by_filter / count_by_encoded_bbox
# ============================================================================

class TestCount:

    def test_unlimited_count(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("hits.xml"))
        count = make_service(transport).count_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records(), max_features=0)

        query = _sent_query(transport)
        assert count == 42
        assert query.attribute("resultType") == "hits"
        assert query.attribute("maxFeatures") is None

    def test_capped_count(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("hits.xml"))
        make_service(transport).count_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records(), max_features=50)
        assert _sent_query(transport).attribute("maxFeatures") == "50"

    def test_wfs2_number_matched(self, make_transport, make_service):
        body = '<wfs:FeatureCollection xmlns:wfs="http://www.opengis.net/wfs/2.0" numberMatched="7" numberReturned="0"/>'
        transport = make_transport(TransportResponse(status_code=200, body=body))
        assert make_service(transport).count_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records()) == 7

    @pytest.mark.parametrize("body", [
        '<wfs:FeatureCollection xmlns:wfs="http://www.opengis.net/wfs"/>',
        '<wfs:FeatureCollection xmlns:wfs="http://www.opengis.net/wfs" numberOfFeatures="unknown"/>',
    ], ids=["missing", "unreadable"])
    def test_no_count(self, make_transport, make_service, body):
        transport = make_transport(TransportResponse(status_code=200, body=body))
        with pytest.raises(UpstreamError):
            make_service(transport).count_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records())

    def test_encoded_bbox(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("hits.xml"))
        make_service(transport).count_by_encoded_bbox(ARCGIS_URL, "t", BBOX)
        assert _sent_query(transport).first("wfs:Query/ogc:Filter/ogc:BBOX/gml:Box") is not None

    def test_encoded_bbox_fallback(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("hits.xml"))
        assert make_service(transport).count_by_encoded_bbox(GEOSERVER_URL, "t", "nope") == 42
        assert _sent_query(transport).first("wfs:Query/ogc:Filter") is None

    def test_bbox_follows_endpoint_dialect(self, make_transport, xml_response, make_service):
        arcgis_bbox = FilterBuilder().bounding_box(EXTENT, DialectTag.ARCGIS)
        transport = make_transport(xml_response("hits.xml"))
        make_service(transport).count_by_filter(GEOSERVER_URL, "t", arcgis_bbox)

        envelope = _sent_query(transport).first("wfs:Query/ogc:Filter/ogc:BBOX/gml:Envelope")
        assert envelope.first_text("gml:lowerCorner") == "-45 110"
        assert envelope.first_text("gml:upperCorner") == "-10 155"


# ============================================================================
# popup_html
# ============================================================================

class TestPopupHtml:

    def test_feature_popup(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("feature_collection.xml"))
        html = make_service(transport).popup_html(GEOSERVER_URL, "gsml:Borehole", "gsml.borehole.1001")
        assert "<td>BH-1001</td>" in html
        assert transport.last.params["featureID"] == "gsml.borehole.1001"

    def test_resolvable_reference(self, make_transport, xml_response, make_service):
        url = "http://resolver.example.org/feature/gsml.borehole.1001"
        transport = make_transport(xml_response("feature_collection.xml"))
        html = make_service(transport).popup_html(url)

        assert transport.last.endpoint == url
        assert transport.last.method == "GET"
        assert "BH-1001" in html

    def test_type_without_id(self, make_transport, make_service):
        with pytest.raises(InvalidFilterError):
            make_service(make_transport()).popup_html(GEOSERVER_URL, "gsml:Borehole")


# ============================================================================
# Capabilities lookups
# ============================================================================

class TestCapabilitiesLookups:

    def test_abstract(self, make_transport, xml_response, make_service):
        service = make_service(make_transport(xml_response("capabilities.xml")))
        assert service.get_feature_abstract(GEOSERVER_URL, "gsml:Borehole").startswith("Borehole collar")
        assert service.get_feature_abstract(GEOSERVER_URL, "gsml:MappedFeature") is None

    def test_metadata_url(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("capabilities.xml"))
        service = make_service(transport)
        assert service.get_feature_metadata_url(GEOSERVER_URL, "gsml:Borehole") == \
            "http://catalogue.example.org/csw?id=borehole"
        assert service.get_feature_metadata_url(GEOSERVER_URL, "unknown") is None
        assert len(transport.calls) == 1


# ============================================================================
# Failures
# ============================================================================

class TestFailures:

    def test_http_error(self, make_transport, make_service):
        transport = make_transport(TransportResponse(status_code=500, body="<error/>"))
        with pytest.raises(UpstreamError) as exc_info:
            make_service(transport).query_by_encoded_bbox(GEOSERVER_URL, "t", BBOX)
        assert exc_info.value.status_code == 500

    def test_exception_report(self, make_transport, xml_response, make_service):
        transport = make_transport(xml_response("exception_report.xml"))
        with pytest.raises(UpstreamError) as exc_info:
            make_service(transport).query_by_encoded_bbox(GEOSERVER_URL, "gsml:Nothing", None)
        assert "gsml:Nothing unknown" in exc_info.value.message

    def test_transport_failure(self, make_transport, make_service):
        transport = make_transport(UpstreamError("timed out", status_code=504))
        with pytest.raises(UpstreamError):
            make_service(transport).count_by_encoded_bbox(GEOSERVER_URL, "t", None)

    def test_single_attempt(self, make_transport, make_service):
        transport = make_transport(TransportResponse(status_code=502, body=""))
        with pytest.raises(UpstreamError):
            make_service(transport).query_by_feature_id(GEOSERVER_URL, "t", "t.1")
        assert len(transport.calls) == 1

    def test_transform_failure_traced(self, make_transport, xml_response, make_service, caplog):
        transport = make_transport(xml_response("feature_collection.xml"))
        service = make_service(transport, transformer=FailingTransformer())

        with pytest.raises(TransformError):
            service.query_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records())

        messages = [r.getMessage() for r in caplog.records]
        assert any(m.endswith(DispatchState.TRANSFORM_FAILED.name) for m in messages)
        assert any(m.endswith(DispatchState.TERMINAL.name) for m in messages)

    def test_non_xml_body_is_transform_error(self, make_transport, make_service):
        transport = make_transport(TransportResponse(status_code=200, body="<html><body>oops</p></html>"))
        with pytest.raises(TransformError):
            make_service(transport).query_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records())

    def test_non_xml_reference_popup(self, make_transport, make_service):
        transport = make_transport(TransportResponse(status_code=200, body="Feature not found"))
        with pytest.raises(TransformError):
            make_service(transport).popup_html("http://resolver.example.org/feature/missing")

    def test_non_xml_count_is_upstream_error(self, make_transport, make_service):
        transport = make_transport(TransportResponse(status_code=200, body="<html><body>oops</p></html>"))
        with pytest.raises(UpstreamError):
            make_service(transport).count_by_filter(GEOSERVER_URL, "t", FilterBuilder().all_records())

    def test_close(self, make_transport, make_service):
        transport = make_transport()
        make_service(transport).close()
        assert transport.closed
