"""
XML feed parser.

The document root's direct children are the rows. A row's columns are its
attributes and the tag names of its direct children; child values are the
full text content of the child. Namespaces are not interpreted.
"""

import xml.etree.ElementTree as ET

import structlog

from parsers.normalizer import ParseResult, unique_headers

logger = structlog.get_logger(__name__)


def parse_xml(content: str) -> ParseResult:
    """
    Parse XML text into headers and rows.

    Args:
        content: Decoded file text

    Returns:
        ParseResult (empty for malformed XML or a root without children)
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.warning("xml_parse_failed", error=str(e))
        return ParseResult()

    elements = list(root)
    if not elements:
        return ParseResult()

    headers = unique_headers(
        name
        for element in elements
        for name in [*element.attrib.keys(), *(child.tag for child in element)]
    )

    rows = []
    for element in elements:
        row = dict.fromkeys(headers, "")
        row.update(element.attrib)
        for child in element:
            row[child.tag] = "".join(child.itertext())
        rows.append(row)

    logger.debug("xml_parsed", root=root.tag, headers=len(headers), rows=len(rows))
    return ParseResult(headers=headers, rows=rows)
