"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, ValueSchema
from models.feed import (
    RawRecord,
    FileType,
    ParsedDataset,
    DatasetSummary,
)
from models.mapping import (
    NOT_MAPPED,
    CUSTOM_MAPPINGS_KEY,
    FieldMapping,
    CustomFieldMapping,
    CustomFieldUpdate,
    MappingAssignment,
    MappingCounts,
    MappingState,
)
from models.schema import (
    FieldType,
    CategoryFormat,
    TargetFieldSpec,
    SchemaField,
    SchemaFieldCreate,
    SchemaFieldUpdate,
    CategoryMapping,
    CategorySettings,
    CategoryMappingUpdate,
    FeedSchema,
    SchemaMetadataUpdate,
    QuickAddField,
    CategoryCoverage,
    SchemaState,
)
from models.history import (
    SnapshotKind,
    FileInfo,
    UploadSnapshot,
    MappingSnapshot,
    SchemaSnapshot,
    Snapshot,
)
from models.workflow import WorkflowStage, WorkflowSummary

__all__ = [
    # Base
    "BaseSchema",
    "ValueSchema",

    # Feed
    "RawRecord",
    "FileType",
    "ParsedDataset",
    "DatasetSummary",

    # Mapping
    "NOT_MAPPED",
    "CUSTOM_MAPPINGS_KEY",
    "FieldMapping",
    "CustomFieldMapping",
    "CustomFieldUpdate",
    "MappingAssignment",
    "MappingCounts",
    "MappingState",

    # Schema
    "FieldType",
    "CategoryFormat",
    "TargetFieldSpec",
    "SchemaField",
    "SchemaFieldCreate",
    "SchemaFieldUpdate",
    "CategoryMapping",
    "CategorySettings",
    "CategoryMappingUpdate",
    "FeedSchema",
    "SchemaMetadataUpdate",
    "QuickAddField",
    "CategoryCoverage",
    "SchemaState",

    # History
    "SnapshotKind",
    "FileInfo",
    "UploadSnapshot",
    "MappingSnapshot",
    "SchemaSnapshot",
    "Snapshot",

    # Workflow
    "WorkflowStage",
    "WorkflowSummary",
]
