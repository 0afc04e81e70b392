# ============================================================================
# CLAUDE CONTEXT - DOCUMENT ADDRESSING
# ============================================================================
# STATUS: Core Infrastructure - Namespace-aware XPath over lxml
# PURPOSE: Address sub-nodes of catalogue and WFS documents by path expression
# EXPORTS: DocumentNode, NAMESPACES
# DEPENDENCIES: lxml
# PATTERNS: Thin wrapper (adapter) over lxml elements
# ============================================================================

"""
Document Addressing

Every document this service reads (ISO 19139 records, CSW responses, WFS
capabilities and feature collections) uses qualified element names, so all
path expressions are evaluated against one shared prefix map.

Usage:
    root = DocumentNode.from_string(xml_bytes)
    title = root.first("gmd:fileIdentifier/gco:CharacterString")
    if title is not None:
        print(title.text)
"""

from typing import Dict, List, Optional, Union

from lxml import etree

from errors import DocumentAddressError


NAMESPACES: Dict[str, str] = {
    "gmd": "http://www.isotc211.org/2005/gmd",
    "gco": "http://www.isotc211.org/2005/gco",
    "gml": "http://www.opengis.net/gml",
    "csw": "http://www.opengis.net/cat/csw/2.0.2",
    "srv": "http://www.isotc211.org/2005/srv",
    "xlink": "http://www.w3.org/1999/xlink",
    "wfs": "http://www.opengis.net/wfs",
    "ogc": "http://www.opengis.net/ogc",
    "ows": "http://www.opengis.net/ows",
}

# External entities and network access stay off for documents from remote providers
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


class DocumentNode:
    """
    One addressable node of an XML document.

    Wraps an lxml element; every node can be the root of further queries.
    """

    def __init__(self, element: etree._Element, namespaces: Optional[Dict[str, str]] = None):
        if not isinstance(element, etree._Element):
            raise DocumentAddressError(
                f"Cannot address object of type {type(element).__name__}",
                node_type=type(element).__name__
            )
        self.element = element
        self.namespaces = namespaces or NAMESPACES

    @classmethod
    def from_string(cls, document: Union[str, bytes]) -> "DocumentNode":
        """
        Parse raw XML text into a root node.

        Raises:
            DocumentAddressError: If the text is not well-formed XML
        """
        if isinstance(document, str):
            document = document.encode("utf-8")
        try:
            return cls(etree.fromstring(document, parser=_PARSER))
        except (etree.XMLSyntaxError, ValueError) as e:
            raise DocumentAddressError(f"Document is not well-formed XML: {e}")

    @classmethod
    def wrap(cls, document: Union["DocumentNode", etree._Element, str, bytes]) -> "DocumentNode":
        """Accept a node, an lxml element or raw XML text."""
        if isinstance(document, DocumentNode):
            return document
        if isinstance(document, (str, bytes)):
            return cls.from_string(document)
        return cls(document)

    def evaluate(self, path: str) -> List["DocumentNode"]:
        """
        Evaluate a path expression and return the matching element nodes.

        Raises:
            DocumentAddressError: If the expression is invalid
        """
        try:
            results = self.element.xpath(path, namespaces=self.namespaces)
        except etree.XPathError as e:
            raise DocumentAddressError(f"Invalid path expression '{path}': {e}", path=path)

        if not isinstance(results, list):
            return []
        return [
            DocumentNode(result, self.namespaces)
            for result in results
            if isinstance(result, etree._Element)
        ]

    def first(self, path: str) -> Optional["DocumentNode"]:
        """First node matching path, or None."""
        nodes = self.evaluate(path)
        return nodes[0] if nodes else None

    def first_text(self, path: str) -> Optional[str]:
        """Stripped text of the first node matching path, or None."""
        node = self.first(path)
        return node.text.strip() if node is not None else None

    @property
    def text(self) -> str:
        """Concatenated text content of this node and its descendants."""
        return "".join(self.element.itertext())

    @property
    def local_name(self) -> str:
        """Element name without namespace."""
        return etree.QName(self.element).localname

    def attribute(self, name: str) -> Optional[str]:
        """Attribute value by (possibly Clark-notation) name."""
        return self.element.get(name)

    def __repr__(self) -> str:
        return f"DocumentNode({self.element.tag})"
