# ============================================================================
# CLAUDE CONTEXT - LINKED RESOURCE CLASSIFICATION
# ============================================================================
# STATUS: Catalogue Layer - gmd:onLine entries to typed resources
# PURPOSE: Decide which service protocol a record's online resource speaks
# EXPORTS: ResourceType, LinkedResource, LinkedResourceClassifier
# DEPENDENCIES: lxml (via infrastructure.addressing), urllib.parse
# PATTERNS: Ordered signature tables, protocol hint before URL heuristics
# ============================================================================

"""
Linked Resource Classification

A catalogue record lists its online resources as gmd:onLine entries. Each
entry carries a URL and usually a protocol identifier such as "OGC:WFS-1.1.0-http-get-feature".
Providers are inconsistent, so classification runs in two passes:

1. Protocol hint (gmd:protocol) against PROTOCOL_SIGNATURES
2. Only if that gives nothing: the URL itself (service= parameter,
   path suffix, OPeNDAP markers, ftp scheme)

An entry that matches neither pass raises ClassificationError. That is a
routine outcome (records often link resource kinds this portal cannot
use) and the record parser simply skips the entry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from errors import ClassificationError
from infrastructure.addressing import DocumentNode


class ResourceType(Enum):
    """Recognised online resource categories."""
    WFS = "WFS"
    WMS = "WMS"
    WCS = "WCS"
    SOS = "SOS"
    OPENDAP = "OPeNDAP"
    FTP = "FTP"
    WWW = "WWW"


# Checked in order; first case-insensitive substring match wins
PROTOCOL_SIGNATURES: Tuple[Tuple[str, ResourceType], ...] = (
    ("OGC:WFS", ResourceType.WFS),
    ("OGC:WMS", ResourceType.WMS),
    ("OGC:WCS", ResourceType.WCS),
    ("OGC:SOS", ResourceType.SOS),
    ("OPENDAP", ResourceType.OPENDAP),
    ("FTP", ResourceType.FTP),
    ("WWW:LINK", ResourceType.WWW),
    ("WWW:DOWNLOAD", ResourceType.WWW),
)

SERVICE_PARAMETERS = {
    "WFS": ResourceType.WFS,
    "WMS": ResourceType.WMS,
    "WCS": ResourceType.WCS,
    "SOS": ResourceType.SOS,
}

PATH_SUFFIXES: Tuple[Tuple[str, ResourceType], ...] = (
    ("/wfs", ResourceType.WFS),
    ("/wms", ResourceType.WMS),
    ("/wcs", ResourceType.WCS),
    ("/sos", ResourceType.SOS),
)

OPENDAP_MARKERS = ("/dodsc/", ".dods", "/opendap/")

_ONLINE_RESOURCE = "gmd:CI_OnlineResource"
_URL_PATH = f"{_ONLINE_RESOURCE}/gmd:linkage/gmd:URL"
_PROTOCOL_PATH = f"{_ONLINE_RESOURCE}/gmd:protocol/gco:CharacterString"
_NAME_PATH = f"{_ONLINE_RESOURCE}/gmd:name/gco:CharacterString"
_DESCRIPTION_PATH = f"{_ONLINE_RESOURCE}/gmd:description/gco:CharacterString"


@dataclass(frozen=True)
class LinkedResource:
    """One classified online resource of a catalogue record."""
    url: str
    resource_type: ResourceType
    name: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "type": self.resource_type.value,
            "name": self.name,
            "description": self.description,
        }


def classify_protocol(protocol: Optional[str]) -> Optional[ResourceType]:
    """Resource type from a protocol identifier, or None."""
    if not protocol:
        return None
    upper = protocol.upper()
    for signature, resource_type in PROTOCOL_SIGNATURES:
        if signature in upper:
            return resource_type
    return None


def classify_url(url: str) -> Optional[ResourceType]:
    """Resource type from the shape of a URL, or None."""
    parts = urlsplit(url)

    if parts.scheme.lower() == "ftp":
        return ResourceType.FTP

    query = {key.lower(): values for key, values in parse_qs(parts.query).items()}
    for service in query.get("service", []):
        resource_type = SERVICE_PARAMETERS.get(service.strip().upper())
        if resource_type:
            return resource_type

    path = parts.path.lower().rstrip("/")
    for suffix, resource_type in PATH_SUFFIXES:
        if path.endswith(suffix):
            return resource_type

    lowered = url.lower()
    if any(marker in lowered for marker in OPENDAP_MARKERS):
        return ResourceType.OPENDAP

    return None


def _optional_text(node: DocumentNode, path: str) -> Optional[str]:
    text = node.first_text(path)
    return text or None


class LinkedResourceClassifier:
    """
    Turns one gmd:onLine node into a LinkedResource.

    Stateless; one instance can be shared by concurrent parses.
    """

    def classify(self, node: DocumentNode, context: str = "") -> LinkedResource:
        """
        Classify a gmd:onLine node.

        Args:
            node: The gmd:onLine element
            context: Record title/identifier, used in error messages only

        Returns:
            LinkedResource

        Raises:
            ClassificationError: No usable URL, or no recognised protocol
        """
        url = node.first_text(_URL_PATH)
        if not url:
            raise ClassificationError(f"Online resource has no URL ({context})", context=context)

        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ClassificationError(
                f"Online resource URL is not absolute: {url!r} ({context})",
                context=context,
                url=url
            )

        protocol = node.first_text(_PROTOCOL_PATH)
        resource_type = classify_protocol(protocol) or classify_url(url)
        if resource_type is None:
            raise ClassificationError(
                f"Unrecognised online resource protocol={protocol!r} url={url!r} ({context})",
                context=context,
                url=url,
                protocol=protocol
            )

        return LinkedResource(
            url=url,
            resource_type=resource_type,
            name=_optional_text(node, _NAME_PATH),
            description=_optional_text(node, _DESCRIPTION_PATH)
        )
