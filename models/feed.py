"""
Parsed feed models.

A feed, whatever its source format, becomes a ParsedDataset: ordered unique
headers plus rows that carry every header as a string.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from models.base import ValueSchema


RawRecord = dict[str, str]


class FileType(str, Enum):
    """Feed file formats."""
    CSV = "csv"
    JSON = "json"
    XML = "xml"
    OTHER = "other"


class ParsedDataset(ValueSchema):
    """
    One uploaded feed after parsing.

    Created once per upload and never changed afterwards. Empty headers and
    empty rows together mean the content could not be parsed.
    """

    headers: list[str] = Field(default_factory=list, description="Column names, first-seen order")
    rows: list[RawRecord] = Field(default_factory=list, description="One record per feed item")
    file_type: FileType = Field(FileType.OTHER, description="Detected format")
    file_name: str = Field("", description="Original file name")
    file_size_bytes: int = Field(0, ge=0, description="Size of the uploaded file")

    @model_validator(mode="after")
    def _rows_cover_headers(self) -> "ParsedDataset":
        if len(set(self.headers)) != len(self.headers):
            raise ValueError("headers must be unique")
        for index, row in enumerate(self.rows):
            missing = [h for h in self.headers if h not in row]
            if missing:
                raise ValueError(f"row {index} is missing headers: {missing}")
        return self

    @property
    def record_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        """True when parsing yielded nothing usable."""
        return not self.headers and not self.rows

    def preview(self, count: int) -> list[RawRecord]:
        """First `count` rows, copied."""
        return [dict(row) for row in self.rows[:count]]

    def column(self, header: str) -> list[str]:
        """All values of one column in row order ("" where the header is unknown)."""
        return [row.get(header, "") for row in self.rows]


class DatasetSummary(ValueSchema):
    """Upload response: what was found in the file."""

    file_name: str
    file_type: FileType
    file_size_bytes: int
    record_count: int
    headers: list[str]
    preview_rows: list[RawRecord]

    @classmethod
    def from_dataset(cls, dataset: ParsedDataset, preview_count: int = 3) -> "DatasetSummary":
        return cls(
            file_name=dataset.file_name,
            file_type=dataset.file_type,
            file_size_bytes=dataset.file_size_bytes,
            record_count=dataset.record_count,
            headers=list(dataset.headers),
            preview_rows=dataset.preview(preview_count),
        )


def coerce_file_type(value: Optional[str]) -> FileType:
    """Map an extension or tag onto FileType, unknown values become OTHER."""
    try:
        return FileType((value or "").lower())
    except ValueError:
        return FileType.OTHER
