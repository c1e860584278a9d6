"""
Feed file dispatcher.

Reads an uploaded file, picks a parser from the file extension (or, for
unknown extensions, from the first character of the content) and returns a
ParsedDataset.
"""

from typing import Any, Optional, Protocol, Union

import structlog

from exceptions import FileReadError, FileTooLargeError
from models.feed import FileType, ParsedDataset, coerce_file_type
from parsers.csv_parser import parse_csv
from parsers.json_parser import parse_json
from parsers.normalizer import ParseResult
from parsers.xml_parser import parse_xml

logger = structlog.get_logger(__name__)


class FeedFile(Protocol):
    """
    What parse_file needs from an upload.

    fastapi.UploadFile satisfies this (it exposes `filename` instead of
    `name`; both are accepted).
    """
    size: Optional[int]

    async def read(self) -> Union[bytes, str]: ...


_PARSERS = {
    FileType.CSV: parse_csv,
    FileType.JSON: parse_json,
    FileType.XML: parse_xml,
}


def detect_file_type(file_name: str) -> FileType:
    """File type from the extension, OTHER when unrecognized."""
    extension = file_name.rsplit(".", 1)[-1].lower() if file_name else ""
    return coerce_file_type(extension)


def sniff_file_type(content: str) -> FileType:
    """Guess the format from the first non-blank character."""
    stripped = content.strip()
    if stripped.startswith(("{", "[")):
        return FileType.JSON
    if stripped.startswith("<"):
        return FileType.XML
    return FileType.CSV


def parse_content(content: str, file_type: FileType) -> ParseResult:
    """Run the parser for `file_type`, sniffing the content for OTHER."""
    if file_type is FileType.OTHER:
        file_type = sniff_file_type(content)
        logger.debug("file_type_sniffed", detected=file_type.value)
    return _PARSERS[file_type](content)


def decode_content(raw: Union[bytes, str]) -> str:
    """Decode upload bytes as UTF-8 (BOM dropped, bad bytes replaced)."""
    if isinstance(raw, str):
        return raw.lstrip("\ufeff")
    return raw.decode("utf-8-sig", errors="replace")


def _file_name(file: Any) -> str:
    return getattr(file, "filename", None) or getattr(file, "name", None) or ""


def _check_size(file_name: str, size: Optional[int], max_bytes: Optional[int]) -> None:
    if max_bytes is not None and size is not None and size > max_bytes:
        logger.warning("file_too_large", file_name=file_name, size=size, limit=max_bytes)
        raise FileTooLargeError(file_name, size, max_bytes)


async def parse_file(file: FeedFile, max_bytes: Optional[int] = None) -> ParsedDataset:
    """
    Read and parse an uploaded feed file.

    Args:
        file: Upload exposing `filename`/`name`, `size` and async `read()`
        max_bytes: Size limit checked before parsing (None = unlimited)

    Returns:
        ParsedDataset; empty headers and rows mean the content could not be parsed

    Raises:
        FileTooLargeError: If the file exceeds max_bytes
        FileReadError: If the file cannot be read
    """
    file_name = _file_name(file)
    _check_size(file_name, getattr(file, "size", None), max_bytes)

    try:
        raw = await file.read()
    except Exception as e:
        logger.error("file_read_failed", file_name=file_name, error=str(e))
        raise FileReadError(file_name, str(e)) from e

    size = getattr(file, "size", None)
    if size is None:
        size = len(raw.encode("utf-8")) if isinstance(raw, str) else len(raw)
    _check_size(file_name, size, max_bytes)

    file_type = detect_file_type(file_name)
    result = parse_content(decode_content(raw), file_type)

    dataset = ParsedDataset(
        headers=result.headers,
        rows=result.rows,
        file_type=file_type,
        file_name=file_name,
        file_size_bytes=size,
    )

    if dataset.is_empty:
        logger.warning("feed_parse_empty", file_name=file_name, file_type=file_type.value)
    else:
        logger.info(
            "feed_parsed",
            file_name=file_name,
            file_type=file_type.value,
            headers=len(dataset.headers),
            records=dataset.record_count,
        )
    return dataset
