# ============================================================================
# CLAUDE CONTEXT - CATALOGUE MODULE
# ============================================================================
# STATUS: Catalogue Layer - ISO 19139 record extraction
# PURPOSE: Raw catalogue documents to structured MetadataRecords
# EXPORTS: MetadataRecord, MetadataRecordParser, LinkedResource,
#          LinkedResourceClassifier, ResourceType, GeographicExtent,
#          CatalogueService, CatalogueResponse
# DEPENDENCIES: lxml, httpx (via infrastructure)
# ============================================================================

"""
Catalogue Module

    csw/
    ├── extent.py      # GeographicExtent value type
    ├── resources.py   # gmd:onLine classification
    ├── record.py      # MetadataRecord + parser
    └── service.py     # CSW GetRecords listing

Usage:
    from csw import MetadataRecordParser, ResourceType

    record = MetadataRecordParser().parse(xml_bytes)
    if record.has_any_resource_of_type({ResourceType.WFS}):
        ...
"""

from .extent import GeographicExtent
from .resources import LinkedResource, LinkedResourceClassifier, ResourceType
from .record import MetadataRecord, MetadataRecordParser, collect_successes
from .service import CatalogueService, CatalogueResponse

__version__ = "1.0.0"
__all__ = [
    "GeographicExtent",
    "LinkedResource",
    "LinkedResourceClassifier",
    "ResourceType",
    "MetadataRecord",
    "MetadataRecordParser",
    "collect_successes",
    "CatalogueService",
    "CatalogueResponse"
]
