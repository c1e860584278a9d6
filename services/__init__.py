"""
Business logic services.

Each service handles one step of the feed workflow.
"""

from services.field_mapping_service import FieldMappingEngine, find_matching_header
from services.category_service import (
    normalize_category,
    collect_source_categories,
    build_category_mappings,
)
from services.schema_service import SchemaDesigner, derive_schema_fields
from services.history_service import (
    HistoryService,
    InMemorySnapshotRepository,
    SnapshotRepository,
    get_history_service,
    get_snapshot_repository,
)
from services.workflow_service import FeedWorkflow

__all__ = [
    "FieldMappingEngine",
    "find_matching_header",
    "normalize_category",
    "collect_source_categories",
    "build_category_mappings",
    "SchemaDesigner",
    "derive_schema_fields",
    "HistoryService",
    "InMemorySnapshotRepository",
    "SnapshotRepository",
    "get_history_service",
    "get_snapshot_repository",
    "FeedWorkflow",
]
