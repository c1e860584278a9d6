"""
History snapshot records.

Plain, immutable copies of what each workflow stage produced. The storage
behind them is an injected repository (services/history_service.py).
"""

from enum import Enum
from typing import Optional, Union

from pydantic import Field

from models.base import ValueSchema
from models.feed import FileType, RawRecord
from models.mapping import CustomFieldMapping, FieldMapping
from models.schema import CategoryFormat, CategoryMapping, SchemaField


class SnapshotKind(str, Enum):
    """Stages that produce history records."""
    UPLOAD = "upload"
    MAPPING = "mapping"
    SCHEMA = "schema"


class FileInfo(ValueSchema):
    """Metadata of an uploaded file."""

    name: str
    size: int = Field(0, ge=0)
    type: str = ""
    last_modified: Optional[int] = Field(None, description="Epoch milliseconds, when the client sent it")


class SnapshotRecord(ValueSchema):
    """Fields every history record carries."""

    id: str
    timestamp: int = Field(..., description="Epoch milliseconds")
    name: str


class UploadSnapshot(SnapshotRecord):
    file_info: FileInfo
    record_count: int
    file_type: FileType
    headers: list[str] = Field(default_factory=list)
    preview_rows: list[RawRecord] = Field(default_factory=list)
    full_rows: Optional[list[RawRecord]] = None


class MappingSnapshot(SnapshotRecord):
    source_fields: list[str]
    mappings: FieldMapping
    custom_fields: list[CustomFieldMapping] = Field(default_factory=list)
    unmapped_fields: list[str] = Field(default_factory=list)


class SchemaSnapshot(SnapshotRecord):
    schema_name: str
    schema_description: str
    fields: list[SchemaField]
    category_format: CategoryFormat
    category_separator: str
    category_mappings: list[CategoryMapping] = Field(default_factory=list)


Snapshot = Union[UploadSnapshot, MappingSnapshot, SchemaSnapshot]

SNAPSHOT_TYPES: dict[SnapshotKind, type] = {
    SnapshotKind.UPLOAD: UploadSnapshot,
    SnapshotKind.MAPPING: MappingSnapshot,
    SnapshotKind.SCHEMA: SchemaSnapshot,
}


def snapshot_kind(snapshot: Snapshot) -> SnapshotKind:
    for kind, snapshot_type in SNAPSHOT_TYPES.items():
        if isinstance(snapshot, snapshot_type):
            return kind
    raise TypeError(f"Not a snapshot record: {type(snapshot).__name__}")
