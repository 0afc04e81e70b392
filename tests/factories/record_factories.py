"""
Catalogue document factories.

Build gmd:MD_Metadata text with only the parts a test cares about, so
each test states its own inputs instead of leaning on a shared fixture.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

GMD_NS = "http://www.isotc211.org/2005/gmd"
GCO_NS = "http://www.isotc211.org/2005/gco"


def _string(value: str) -> str:
    return f"<gco:CharacterString>{value}</gco:CharacterString>"


def make_online_resource(
    url: Optional[str],
    protocol: Optional[str] = None,
    name: Optional[str] = None,
    description: Optional[str] = None
) -> str:
    """One gmd:onLine entry; None omits the element."""
    parts = []
    if url is not None:
        parts.append(f"<gmd:linkage><gmd:URL>{url}</gmd:URL></gmd:linkage>")
    if protocol is not None:
        parts.append(f"<gmd:protocol>{_string(protocol)}</gmd:protocol>")
    if name is not None:
        parts.append(f"<gmd:name>{_string(name)}</gmd:name>")
    if description is not None:
        parts.append(f"<gmd:description>{_string(description)}</gmd:description>")
    return f"<gmd:onLine><gmd:CI_OnlineResource>{''.join(parts)}</gmd:CI_OnlineResource></gmd:onLine>"


def make_bounding_box(west, east, south, north) -> str:
    """gmd:EX_GeographicBoundingBox; None omits that bound."""
    bounds = []
    for element, value in (
        ("westBoundLongitude", west),
        ("eastBoundLongitude", east),
        ("southBoundLatitude", south),
        ("northBoundLatitude", north),
    ):
        if value is not None:
            bounds.append(f"<gmd:{element}><gco:Decimal>{value}</gco:Decimal></gmd:{element}>")
    return f"<gmd:EX_GeographicBoundingBox>{''.join(bounds)}</gmd:EX_GeographicBoundingBox>"


def make_record_xml(
    identifier: Optional[str] = "record-1",
    title: Optional[str] = "A Layer",
    abstract: Optional[str] = None,
    organisation: Optional[str] = None,
    keyword_groups: Iterable[Sequence[str]] = (),
    bbox: Optional[Tuple] = None,
    resources: Iterable[str] = ()
) -> str:
    """
    Build a gmd:MD_Metadata document.

    Args:
        bbox: (west, east, south, north) or None for no extent
        resources: Pre-rendered entries from make_online_resource()
    """
    identification: List[str] = []
    if title is not None:
        identification.append(
            f"<gmd:citation><gmd:CI_Citation><gmd:title>{_string(title)}</gmd:title></gmd:CI_Citation></gmd:citation>"
        )
    if abstract is not None:
        identification.append(f"<gmd:abstract>{_string(abstract)}</gmd:abstract>")
    for group in keyword_groups:
        entries = "".join(f"<gmd:keyword>{_string(k)}</gmd:keyword>" for k in group)
        identification.append(f"<gmd:descriptiveKeywords><gmd:MD_Keywords>{entries}</gmd:MD_Keywords></gmd:descriptiveKeywords>")
    if bbox is not None:
        identification.append(
            "<gmd:extent><gmd:EX_Extent><gmd:geographicElement>"
            f"{make_bounding_box(*bbox)}"
            "</gmd:geographicElement></gmd:EX_Extent></gmd:extent>"
        )

    parts = [f'<gmd:MD_Metadata xmlns:gmd="{GMD_NS}" xmlns:gco="{GCO_NS}">']
    if identifier is not None:
        parts.append(f"<gmd:fileIdentifier>{_string(identifier)}</gmd:fileIdentifier>")
    if organisation is not None:
        parts.append(
            "<gmd:contact><gmd:CI_ResponsibleParty>"
            f"<gmd:organisationName>{_string(organisation)}</gmd:organisationName>"
            "</gmd:CI_ResponsibleParty></gmd:contact>"
        )
    parts.append(
        f"<gmd:identificationInfo><gmd:MD_DataIdentification>{''.join(identification)}"
        "</gmd:MD_DataIdentification></gmd:identificationInfo>"
    )
    online = "".join(resources)
    if online:
        parts.append(
            "<gmd:distributionInfo><gmd:MD_Distribution><gmd:transferOptions><gmd:MD_DigitalTransferOptions>"
            f"{online}"
            "</gmd:MD_DigitalTransferOptions></gmd:transferOptions></gmd:MD_Distribution></gmd:distributionInfo>"
        )
    parts.append("</gmd:MD_Metadata>")
    return "".join(parts)
