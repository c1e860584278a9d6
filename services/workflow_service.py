"""
Feed workflow session.

One FeedWorkflow carries a single upload through mapping and schema design:

    empty -> fields_drafted -> fields_validated -> categories_configured -> finalized

It owns its dataset, mapping engine and schema designer; history goes to
the injected HistoryService.
"""

import uuid
from typing import Optional

import structlog

from config.catalog import CATEGORY_TARGET, STANDARD_TARGET_FIELDS
from config.settings import get_settings
from exceptions import InvalidStageTransitionError
from models.feed import DatasetSummary, ParsedDataset
from models.history import MappingSnapshot, SchemaSnapshot, SnapshotKind, UploadSnapshot
from models.mapping import is_mapped
from models.schema import CategoryFormat, CategoryMapping, FeedSchema
from models.workflow import WorkflowStage, WorkflowSummary
from services.category_service import collect_source_categories
from services.field_mapping_service import FieldMappingEngine
from services.history_service import HistoryService, dataset_from_upload_snapshot
from services.schema_service import SchemaDesigner

logger = structlog.get_logger(__name__)


class FeedWorkflow:
    """
    Workflow state for one uploaded feed.

    Attributes:
        workflow_id: Session identifier
        stage: Current WorkflowStage
        dataset: Parsed feed (None until loaded)
        mapping: Field mapping engine for the dataset headers
        schema: Schema designer
    """

    def __init__(self, history: HistoryService, workflow_id: Optional[str] = None):
        self.workflow_id = workflow_id or str(uuid.uuid4())
        self.history = history
        self.stage = WorkflowStage.EMPTY
        self.dataset: Optional[ParsedDataset] = None
        self.mapping: Optional[FieldMappingEngine] = None
        self.schema = SchemaDesigner()
        self.required_fields_validated = False
        self.upload_snapshot_id: Optional[str] = None
        self.mapping_snapshot_id: Optional[str] = None
        self.schema_snapshot_id: Optional[str] = None

    # ===================
    # UPLOAD
    # ===================

    def load_dataset(self, dataset: ParsedDataset, record_history: bool = True) -> Optional[UploadSnapshot]:
        """
        Start (or restart) the workflow on a parsed feed.

        Mapping is auto-proposed from the headers; schema state is reset.
        """
        settings = get_settings()
        self.dataset = dataset
        self.mapping = FieldMappingEngine(dataset.headers, STANDARD_TARGET_FIELDS)
        self.schema = SchemaDesigner()
        self.required_fields_validated = False
        self.mapping_snapshot_id = None
        self.schema_snapshot_id = None
        self._move_to(WorkflowStage.FIELDS_DRAFTED)

        snapshot = None
        if record_history:
            snapshot = self.history.record_upload(
                dataset,
                preview_count=settings.preview_row_count,
                include_full_rows=settings.store_full_rows,
            )
            self.upload_snapshot_id = snapshot.id

        logger.info(
            "workflow_dataset_loaded",
            workflow_id=self.workflow_id,
            file_name=dataset.file_name,
            records=dataset.record_count,
        )
        return snapshot

    def load_upload_snapshot(self, snapshot_id: str) -> ParsedDataset:
        """Restart the workflow on a dataset from history."""
        snapshot = self.history.get(SnapshotKind.UPLOAD, snapshot_id)
        dataset = dataset_from_upload_snapshot(snapshot)
        self.load_dataset(dataset, record_history=False)
        self.upload_snapshot_id = snapshot.id
        return dataset

    # ===================
    # MAPPING
    # ===================

    def require_mapping(self) -> FieldMappingEngine:
        if self.mapping is None:
            raise InvalidStageTransitionError(
                self.stage.value,
                WorkflowStage.FIELDS_DRAFTED.value,
                "Upload a feed before mapping fields",
            )
        return self.mapping

    def load_mapping_snapshot(self, snapshot_id: str) -> MappingSnapshot:
        """Restore mappings and custom fields from history onto the current feed."""
        mapping = self.require_mapping()
        snapshot = self.history.get(SnapshotKind.MAPPING, snapshot_id)
        mapping.load_snapshot(snapshot)
        self._back_to_drafted()
        return snapshot

    def mapping_changed(self) -> None:
        """Call after any mapping edit: schema must be re-derived."""
        self._back_to_drafted()

    def confirm_mapping(self) -> list:
        """
        Validate required fields, record the mapping and derive the schema.

        Raises:
            MissingRequiredFieldsError: If a required target is unmapped
        """
        mapping = self.require_mapping()
        mapping.validate_required()

        snapshot = self.history.record_mapping(
            self.dataset.file_name,
            mapping.snapshot_fields(),
        )
        self.mapping_snapshot_id = snapshot.id

        fields = self.schema.generate_initial_schema(
            mapping.combined_mappings(),
            self.dataset.headers,
            STANDARD_TARGET_FIELDS,
        )
        self.required_fields_validated = True
        self._move_to(WorkflowStage.FIELDS_VALIDATED)
        return fields

    # ===================
    # CATEGORIES
    # ===================

    def source_categories(self) -> list[str]:
        """Distinct categories found in the column mapped to `category`."""
        if self.dataset is None:
            return []
        category_field = next((f for f in self.schema.fields if f.name == CATEGORY_TARGET), None)
        source = category_field.source_field if category_field else None
        if not source and self.mapping is not None:
            candidate = self.mapping.mappings.get(CATEGORY_TARGET)
            source = candidate if is_mapped(candidate) else None
        if not source or source not in self.dataset.headers:
            return []
        return collect_source_categories(self.dataset.column(source))

    def configure_categories(
        self,
        category_format: Optional[CategoryFormat] = None,
        separator: Optional[str] = None,
    ) -> list[CategoryMapping]:
        """
        Apply category settings and (re)generate the category table from
        the feed, keeping hand-edited targets.
        """
        self._require_validated(WorkflowStage.CATEGORIES_CONFIGURED)
        if category_format is not None:
            self.schema.set_category_format(category_format)
        if separator is not None:
            self.schema.set_category_separator(separator)
        mappings = self.schema.auto_generate_category_mappings(self.source_categories())
        self._move_to(WorkflowStage.CATEGORIES_CONFIGURED)
        return mappings

    # ===================
    # FINALIZE
    # ===================

    def finalize(self) -> SchemaSnapshot:
        """
        Snapshot the schema to history.

        Categories may still be incomplete; only the required field check is
        enforced.

        Raises:
            InvalidStageTransitionError: If required fields were never validated
        """
        self._require_validated(WorkflowStage.FINALIZED)
        snapshot = self.history.record_schema(self.schema.name, self.schema.snapshot_fields())
        self.schema_snapshot_id = snapshot.id
        self._move_to(WorkflowStage.FINALIZED)

        mapped, total = self.schema.category_coverage()
        if mapped < total:
            logger.warning("finalized_with_unmapped_categories", mapped=mapped, total=total)
        return snapshot

    def load_schema_snapshot(self, snapshot_id: str) -> SchemaSnapshot:
        """Restore a schema verbatim from history."""
        snapshot = self.history.get(SnapshotKind.SCHEMA, snapshot_id)
        self.schema.load_snapshot(snapshot)
        self.schema.source_fields = list(self.dataset.headers) if self.dataset else []
        return snapshot

    def full_schema(self) -> FeedSchema:
        return self.schema.get_full_schema()

    def summary(self) -> WorkflowSummary:
        return WorkflowSummary(
            workflow_id=self.workflow_id,
            stage=self.stage,
            required_fields_validated=self.required_fields_validated,
            dataset=DatasetSummary.from_dataset(self.dataset) if self.dataset else None,
            upload_snapshot_id=self.upload_snapshot_id,
            mapping_snapshot_id=self.mapping_snapshot_id,
            schema_snapshot_id=self.schema_snapshot_id,
        )

    # ===================
    # STAGES
    # ===================

    def schema_changed(self) -> None:
        """Call after a field or category edit on a finalized schema."""
        if self.stage is WorkflowStage.FINALIZED:
            self._move_to(WorkflowStage.CATEGORIES_CONFIGURED)

    def _require_validated(self, new_stage: WorkflowStage) -> None:
        if not self.required_fields_validated:
            raise InvalidStageTransitionError(
                self.stage.value,
                new_stage.value,
                "Required fields must be mapped and confirmed first",
            )

    def _back_to_drafted(self) -> None:
        if self.stage is not WorkflowStage.EMPTY:
            self._move_to(WorkflowStage.FIELDS_DRAFTED)

    def _move_to(self, stage: WorkflowStage) -> None:
        if stage is not self.stage:
            logger.debug(
                "workflow_stage_changed",
                workflow_id=self.workflow_id,
                old_stage=self.stage.value,
                new_stage=stage.value,
            )
        self.stage = stage
