"""
Workflow session models.
"""

from enum import Enum
from typing import Optional

from models.base import ValueSchema
from models.feed import DatasetSummary


class WorkflowStage(str, Enum):
    """
    Stages of one feed workflow, in order.

    empty -> fields_drafted -> fields_validated -> categories_configured -> finalized
    """
    EMPTY = "empty"
    FIELDS_DRAFTED = "fields_drafted"
    FIELDS_VALIDATED = "fields_validated"
    CATEGORIES_CONFIGURED = "categories_configured"
    FINALIZED = "finalized"


class WorkflowSummary(ValueSchema):
    """State of a workflow session as returned by the API."""

    workflow_id: str
    stage: WorkflowStage
    required_fields_validated: bool
    dataset: Optional[DatasetSummary] = None
    upload_snapshot_id: Optional[str] = None
    mapping_snapshot_id: Optional[str] = None
    schema_snapshot_id: Optional[str] = None
