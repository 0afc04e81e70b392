# ============================================================================
# CLAUDE CONTEXT - CATALOGUE SERVICE
# ============================================================================
# STATUS: Catalogue Layer - CSW GetRecords listing
# PURPOSE: Fetch a page of ISO 19139 records and hand back parsed MetadataRecords
# EXPORTS: CatalogueService, CatalogueResponse, build_record_info_url
# DEPENDENCIES: lxml (via infrastructure), httpx (via HttpTransport)
# PATTERNS: Service Layer, injected transport and logger
# ENTRY_POINTS: CatalogueService(transport).get_records(csw_url)
# ============================================================================

"""
Catalogue Service

Issues CSW 2.0.2 GetRecords requests and turns the response into
MetadataRecord instances. This is the owner of each record's
record_info_url: it is set here, once, to the GetRecordById URL that
returns the full document from the same catalogue.

Usage:
    service = CatalogueService(HttpTransport())
    page = service.get_records("https://catalogue.example.org/csw", max_records=10)
    for record in page.records:
        print(record.title, record.record_info_url)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from config import get_app_config
from errors import DocumentAddressError
from infrastructure.addressing import DocumentNode
from infrastructure.ows import parse_ows_response
from infrastructure.transport import Transport
from util_logger import ComponentType, LoggerFactory

from .record import MetadataRecord, MetadataRecordParser

GMD_OUTPUT_SCHEMA = "http://www.isotc211.org/2005/gmd"

GET_RECORDS_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<csw:GetRecords xmlns:csw="http://www.opengis.net/cat/csw/2.0.2"
    xmlns:gmd="http://www.isotc211.org/2005/gmd"
    service="CSW" version="2.0.2" resultType="results"
    outputFormat="application/xml" outputSchema="{output_schema}"
    startPosition="{start_position}" maxRecords="{max_records}">
  <csw:Query typeNames="gmd:MD_Metadata">
    <csw:ElementSetName>full</csw:ElementSetName>
  </csw:Query>
</csw:GetRecords>"""


def build_record_info_url(catalogue_url: str, identifier: str) -> str:
    """GetRecordById URL returning the full ISO document for identifier."""
    query = urlencode({
        "service": "CSW",
        "version": "2.0.2",
        "request": "GetRecordById",
        "outputSchema": GMD_OUTPUT_SCHEMA,
        "id": identifier,
    })
    separator = "&" if "?" in catalogue_url else "?"
    return f"{catalogue_url}{separator}{query}"


def _int_attribute(node: Optional[DocumentNode], name: str) -> int:
    if node is None:
        return 0
    try:
        return int(node.attribute(name) or 0)
    except ValueError:
        return 0


@dataclass
class CatalogueResponse:
    """One page of catalogue records."""
    records: List[MetadataRecord] = field(default_factory=list)
    number_of_records_matched: int = 0
    number_of_records_returned: int = 0
    next_record: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "numberOfRecordsMatched": self.number_of_records_matched,
            "numberOfRecordsReturned": self.number_of_records_returned,
            "nextRecord": self.next_record,
        }


class CatalogueService:
    """
    CSW client producing parsed catalogue records.
    """

    def __init__(
        self,
        transport: Transport,
        parser: Optional[MetadataRecordParser] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.transport = transport
        self.logger = logger or LoggerFactory.create_logger(ComponentType.SERVICE, "CatalogueService")
        self.parser = parser or MetadataRecordParser(logger=self.logger)

    def get_records(
        self,
        catalogue_url: str,
        start_position: int = 1,
        max_records: Optional[int] = None
    ) -> CatalogueResponse:
        """
        Fetch and parse one page of records.

        Raises:
            UpstreamError: Transport failure, HTTP error or exception report
        """
        if max_records is None:
            max_records = get_app_config().csw_default_max_records

        body = GET_RECORDS_TEMPLATE.format(
            output_schema=GMD_OUTPUT_SCHEMA,
            start_position=start_position,
            max_records=max_records
        )
        response = self.transport.send(catalogue_url, "POST", body=body)
        root = parse_ows_response(response, catalogue_url)

        page = self.parse_get_records_response(root, catalogue_url)
        self.logger.info(
            f"Retrieved {len(page.records)}/{page.number_of_records_matched} records from {catalogue_url}"
        )
        return page

    def parse_get_records_response(self, document, catalogue_url: str) -> CatalogueResponse:
        """
        Parse a csw:GetRecordsResponse into records.

        A record that cannot be addressed is skipped; every returned record
        has its record_info_url assigned.
        """
        root = DocumentNode.wrap(document)
        results = root.first("csw:SearchResults")

        records: List[MetadataRecord] = []
        for node in root.evaluate("csw:SearchResults/gmd:MD_Metadata"):
            try:
                record = self.parser.parse(node)
            except DocumentAddressError as e:
                self.logger.debug(f"Skipping unaddressable record from {catalogue_url}: {e.message}")
                continue
            record.record_info_url = build_record_info_url(catalogue_url, record.identifier)
            records.append(record)

        return CatalogueResponse(
            records=records,
            number_of_records_matched=_int_attribute(results, "numberOfRecordsMatched"),
            number_of_records_returned=_int_attribute(results, "numberOfRecordsReturned"),
            next_record=_int_attribute(results, "nextRecord")
        )
