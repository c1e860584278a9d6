"""
JSON feed parser.

Accepts an array of objects (one row per element) or a single object (one
row). Malformed JSON is logged and yields an empty result; callers treat
empty headers and rows as "could not parse".
"""

import json

import structlog

from parsers.normalizer import ParseResult, build_rows, unique_headers

logger = structlog.get_logger(__name__)


def _reject_constant(name: str):
    # NaN / Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_json(content: str) -> ParseResult:
    """
    Parse JSON text into headers and rows.

    Headers are the union of keys across all elements in first-seen order.
    Nested objects and arrays are kept as compact JSON text.

    Args:
        content: Decoded file text

    Returns:
        ParseResult (empty for malformed JSON, empty arrays and scalars)
    """
    try:
        data = json.loads(content, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the decoder can follow
        logger.warning("json_parse_failed", error=str(e))
        return ParseResult()

    if isinstance(data, list) and data:
        items = [item if isinstance(item, dict) else {} for item in data]
        headers = unique_headers(key for item in items for key in item)
        rows = build_rows(items, headers)
        logger.debug("json_parsed", shape="array", headers=len(headers), rows=len(rows))
        return ParseResult(headers=headers, rows=rows)

    if isinstance(data, dict):
        headers = list(data.keys())
        logger.debug("json_parsed", shape="object", headers=len(headers), rows=1)
        return ParseResult(headers=headers, rows=build_rows([data], headers))

    logger.info("json_unsupported_shape", shape=type(data).__name__)
    return ParseResult()
