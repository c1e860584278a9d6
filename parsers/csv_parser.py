"""
CSV feed parser.

Comma separated, double-quote aware. A quote preceded by a backslash does
not toggle quoting; doubled quotes ("") are NOT treated as an escaped quote.
Existing partner feeds depend on this behaviour.
"""

import re

import structlog

from parsers.normalizer import ParseResult, unique_headers

logger = structlog.get_logger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")


def parse_csv(content: str) -> ParseResult:
    """
    Parse CSV text into headers and rows.

    The first non-blank line is the header row. Lines with fewer values than
    headers get "" for the rest; extra values are ignored.

    Args:
        content: Decoded file text

    Returns:
        ParseResult (empty for empty input)
    """
    lines = [line for line in _LINE_BREAK.split(content) if line.strip()]

    if not lines:
        return ParseResult()

    columns = [header.strip() for header in lines[0].split(",")]
    rows = []
    for line in lines[1:]:
        values = split_csv_line(line)
        row: dict[str, str] = {}
        # Repeated header names: the last column wins
        for index, header in enumerate(columns):
            row[header] = values[index] if index < len(values) else ""
        rows.append(row)

    headers = unique_headers(columns)
    logger.debug("csv_parsed", headers=len(headers), rows=len(rows))
    return ParseResult(headers=headers, rows=rows)


def split_csv_line(line: str) -> list[str]:
    """Tokenize one data line. Every token is trimmed."""
    values: list[str] = []
    current: list[str] = []
    in_quotes = False

    for index, char in enumerate(line):
        if char == '"' and (index == 0 or line[index - 1] != "\\"):
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    values.append("".join(current).strip())
    return values
