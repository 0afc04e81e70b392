# ============================================================================
# CLAUDE CONTEXT - METADATA RECORD PARSER
# ============================================================================
# STATUS: Catalogue Layer - ISO 19139 gmd:MD_Metadata to MetadataRecord
# PURPOSE: Best-effort extraction of a fixed record schema from provider documents
# EXPORTS: MetadataRecord, MetadataRecordParser, FieldRule, SCALAR_FIELDS, collect_successes
# DEPENDENCIES: lxml (via infrastructure.addressing)
# PATTERNS: Declarative field table, collect-successes combinator, injected logger
# ENTRY_POINTS: MetadataRecordParser().parse(node)
# ============================================================================

"""
Metadata Record Parser

Catalogue documents come from many providers with uneven conformance. The
parser always produces a record: a missing scalar becomes "", an unusable
bounding box becomes extent=None, and a bad resource or keyword group is
dropped with a DEBUG log line. Only a document that cannot be addressed at
all raises (DocumentAddressError).

Scalar fields are data, not code: add a FieldRule to SCALAR_FIELDS and a
matching attribute to MetadataRecord.

Usage:
    parser = MetadataRecordParser()
    record = parser.parse(md_metadata_node)
    wfs_links = record.filter_resources_by_type({ResourceType.WFS})
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from errors import (
    ClassificationError,
    DocumentAddressError,
    MalformedExtentError,
    PortalError,
)
from infrastructure.addressing import DocumentNode
from util_logger import ComponentType, LoggerFactory

from .extent import GeographicExtent
from .resources import LinkedResource, LinkedResourceClassifier, ResourceType

T = TypeVar("T")
R = TypeVar("R")

_DATA_IDENTIFICATION = "gmd:identificationInfo/gmd:MD_DataIdentification"

ONLINE_RESOURCES_PATH = (
    "gmd:distributionInfo/gmd:MD_Distribution/gmd:transferOptions/"
    "gmd:MD_DigitalTransferOptions/gmd:onLine"
)
BOUNDING_BOX_PATH = (
    f"{_DATA_IDENTIFICATION}/gmd:extent/gmd:EX_Extent/"
    "gmd:geographicElement/gmd:EX_GeographicBoundingBox"
)
KEYWORD_GROUPS_PATH = f"{_DATA_IDENTIFICATION}/gmd:descriptiveKeywords"
KEYWORD_ENTRIES_PATH = "gmd:MD_Keywords/gmd:keyword/gco:CharacterString"


# ============================================================================
# FIELD RULES
# ============================================================================

@dataclass(frozen=True)
class FieldRule:
    """One scalar field: first node at path, stripped text, else default."""
    name: str
    path: str
    default: str = ""

    def extract(self, node: DocumentNode) -> str:
        text = node.first_text(self.path)
        return text if text is not None else self.default


SCALAR_FIELDS: Tuple[FieldRule, ...] = (
    FieldRule("title", f"{_DATA_IDENTIFICATION}/gmd:citation/gmd:CI_Citation/gmd:title/gco:CharacterString"),
    FieldRule("abstract_text", f"{_DATA_IDENTIFICATION}/gmd:abstract/gco:CharacterString"),
    FieldRule("contact_organisation", "gmd:contact/gmd:CI_ResponsibleParty/gmd:organisationName/gco:CharacterString"),
    FieldRule("identifier", "gmd:fileIdentifier/gco:CharacterString"),
)


# ============================================================================
# COLLECT-SUCCESSES COMBINATOR
# ============================================================================

def collect_successes(
    items: Iterable[T],
    convert: Callable[[T], R],
    expected: Tuple[Type[Exception], ...] = (PortalError,),
    on_failure: Optional[Callable[[T, Exception], None]] = None
) -> List[R]:
    """
    Convert every item, keeping successes in input order.

    Items whose conversion raises one of the expected exception types are
    dropped and reported to on_failure. Anything else propagates.
    """
    results: List[R] = []
    for item in items:
        try:
            results.append(convert(item))
        except expected as e:
            if on_failure is not None:
                on_failure(item, e)
    return results


# ============================================================================
# METADATA RECORD
# ============================================================================

@dataclass
class MetadataRecord:
    """
    Structured view of one catalogue metadata document.

    All fields are fixed at construction. record_info_url is the exception:
    the catalogue listing assigns it exactly once after parsing.
    """
    title: str = ""
    abstract_text: str = ""
    contact_organisation: str = ""
    identifier: str = ""
    extent: Optional[GeographicExtent] = None
    keywords: Tuple[str, ...] = ()
    resources: Tuple[LinkedResource, ...] = ()
    _record_info_url: Optional[str] = field(default=None, init=False, repr=False)

    @property
    def record_info_url(self) -> Optional[str]:
        return self._record_info_url

    @record_info_url.setter
    def record_info_url(self, url: str) -> None:
        if self._record_info_url is not None:
            raise ValueError(f"record_info_url already set for record '{self.identifier}'")
        self._record_info_url = url

    def filter_resources_by_type(self, types: Iterable[ResourceType]) -> List[LinkedResource]:
        """Resources whose type is in types, in document order."""
        wanted = set(types)
        return [r for r in self.resources if r.resource_type in wanted]

    def has_any_resource_of_type(self, types: Iterable[ResourceType]) -> bool:
        """True if at least one resource has a type in types."""
        wanted = set(types)
        return any(r.resource_type in wanted for r in self.resources)

    def has_keyword(self, keyword: str) -> bool:
        """Exact match against the descriptive keywords."""
        return keyword in self.keywords

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready view for the catalogue listing response."""
        return {
            "title": self.title,
            "abstract": self.abstract_text,
            "contactOrganisation": self.contact_organisation,
            "identifier": self.identifier,
            "recordInfoUrl": self.record_info_url,
            "extent": self.extent.as_bbox() if self.extent else None,
            "keywords": list(self.keywords),
            "resources": [r.to_dict() for r in self.resources],
        }


# ============================================================================
# PARSER
# ============================================================================

class MetadataRecordParser:
    """
    Parses gmd:MD_Metadata nodes into MetadataRecord instances.

    Holds no per-document state; one parser can serve concurrent calls.
    """

    def __init__(
        self,
        classifier: Optional[LinkedResourceClassifier] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            classifier: Resource classifier (default LinkedResourceClassifier)
            logger: Diagnostic sink (default a PARSER component logger)
        """
        self.classifier = classifier or LinkedResourceClassifier()
        self.logger = logger or LoggerFactory.create_logger(ComponentType.PARSER, "MetadataRecordParser")

    def parse(self, document) -> MetadataRecord:
        """
        Parse one metadata document.

        Args:
            document: DocumentNode, lxml element or raw XML text

        Returns:
            MetadataRecord (always, for any addressable document)

        Raises:
            DocumentAddressError: Document cannot be addressed at all
        """
        node = DocumentNode.wrap(document)

        scalars = {rule.name: rule.extract(node) for rule in SCALAR_FIELDS}
        context = scalars.get("title") or scalars.get("identifier") or "<untitled>"

        return MetadataRecord(
            extent=self._parse_extent(node, context),
            keywords=tuple(self._parse_keywords(node, context)),
            resources=tuple(self._parse_resources(node, context)),
            **scalars
        )

    def _parse_resources(self, node: DocumentNode, context: str) -> List[LinkedResource]:
        def skipped(_, error: Exception) -> None:
            self.logger.debug(f"Unable to parse online resource for record='{context}': {error}")

        return collect_successes(
            node.evaluate(ONLINE_RESOURCES_PATH),
            lambda online: self.classifier.classify(online, context),
            expected=(ClassificationError,),
            on_failure=skipped
        )

    def _parse_extent(self, node: DocumentNode, context: str) -> Optional[GeographicExtent]:
        bbox_node = node.first(BOUNDING_BOX_PATH)
        if bbox_node is None:
            return None
        try:
            return GeographicExtent.from_bounding_box_node(bbox_node)
        except MalformedExtentError as e:
            self.logger.debug(f"Discarding bounding box for record='{context}': {e.message}")
            return None

    def _parse_keywords(self, node: DocumentNode, context: str) -> List[str]:
        def skipped(_, error: Exception) -> None:
            self.logger.debug(f"Unable to parse descriptive keywords for record='{context}': {error}")

        def keywords_of(group: DocumentNode) -> List[str]:
            keywords = [entry.text.strip() for entry in group.evaluate(KEYWORD_ENTRIES_PATH)]
            if not keywords:
                raise ValueError("keyword group has no entries")
            if not all(keywords):
                raise ValueError(f"keyword group has a blank entry: {keywords}")
            return keywords

        groups = collect_successes(
            node.evaluate(KEYWORD_GROUPS_PATH),
            keywords_of,
            expected=(DocumentAddressError, ValueError),
            on_failure=skipped
        )
        return [keyword for group in groups for keyword in group]
