# ============================================================================
# CLAUDE CONTEXT - WFS RESPONSE TRANSFORMER
# ============================================================================
# STATUS: WFS Layer - GML to display formats
# PURPOSE: Apply the bundled XSLT stylesheets to raw WFS responses
# EXPORTS: TransformFormat, Transformer, XsltTransformer
# DEPENDENCIES: lxml
# PATTERNS: Adapter over lxml.etree.XSLT, stylesheets compiled lazily
# ============================================================================

"""
WFS Response Transformer

    wfs/xslt/
    ├── gml_to_kml.xsl   # map display
    └── gml_to_html.xsl  # feature popups

Any failure to produce output (body is not XML, stylesheet error, empty
result) is a TransformError; the raw body never leaks into the error.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from lxml import etree

from errors import DocumentAddressError, TransformError
from infrastructure.addressing import DocumentNode

logger = logging.getLogger(__name__)

STYLESHEET_DIR = Path(__file__).parent / "xslt"


class TransformFormat(Enum):
    KML = "kml"
    HTML = "html"


STYLESHEETS = {
    TransformFormat.KML: "gml_to_kml.xsl",
    TransformFormat.HTML: "gml_to_html.xsl",
}


class Transformer:
    """Interface consumed by WFSQueryService."""

    def transform(self, raw_body: str, target: TransformFormat) -> str:
        raise NotImplementedError


class XsltTransformer(Transformer):
    """
    XSLT 1.0 transformer using lxml.

    Usage:
        transformer = XsltTransformer()
        kml = transformer.transform(gml_text, TransformFormat.KML)
    """

    def __init__(self, stylesheet_dir: Optional[Path] = None):
        self.stylesheet_dir = Path(stylesheet_dir) if stylesheet_dir else STYLESHEET_DIR
        self._compiled: Dict[TransformFormat, etree.XSLT] = {}

    def _get_xslt(self, target: TransformFormat) -> etree.XSLT:
        if target not in self._compiled:
            path = self.stylesheet_dir / STYLESHEETS[target]
            try:
                self._compiled[target] = etree.XSLT(etree.parse(str(path)))
            except (OSError, etree.XMLSyntaxError, etree.XSLTParseError) as e:
                raise TransformError(f"Unable to load stylesheet {path.name}: {e}", target=target.value)
            logger.debug(f"Compiled stylesheet {path.name}")
        return self._compiled[target]

    def transform(self, raw_body: str, target: TransformFormat) -> str:
        """
        Transform a WFS response body.

        Raises:
            TransformError: Body not XML, XSLT failure, or empty output
        """
        xslt = self._get_xslt(target)

        try:
            document = DocumentNode.from_string(raw_body)
        except DocumentAddressError as e:
            raise TransformError(f"Response is not transformable XML: {e.message}", target=target.value)

        try:
            result = xslt(document.element)
        except etree.XSLTApplyError as e:
            raise TransformError(f"{target.value} transform failed: {e}", target=target.value)

        output = str(result)
        if not output.strip():
            raise TransformError(f"{target.value} transform produced no output", target=target.value)

        return output
