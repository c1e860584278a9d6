"""
Feed file parsers.

Each format parser is a pure function `content -> ParseResult`; parse_file
dispatches on the file name and builds the ParsedDataset.
"""

from parsers.normalizer import (
    FeedValue,
    ValueKind,
    ParseResult,
    stringify_value,
)
from parsers.csv_parser import parse_csv
from parsers.json_parser import parse_json
from parsers.xml_parser import parse_xml
from parsers.feed_parser import (
    detect_file_type,
    sniff_file_type,
    parse_content,
    parse_file,
)

__all__ = [
    "FeedValue",
    "ValueKind",
    "ParseResult",
    "stringify_value",
    "parse_csv",
    "parse_json",
    "parse_xml",
    "detect_file_type",
    "sniff_file_type",
    "parse_content",
    "parse_file",
]
