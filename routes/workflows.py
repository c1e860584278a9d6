"""
Feed workflow API routes.

Upload a feed, map its fields, design the schema and finalize it. Each
workflow is an in-memory session (services/session_store.py).
"""

from typing import Optional

from fastapi import APIRouter, File, Query, UploadFile
from fastapi.responses import JSONResponse
import structlog

from config.settings import get_settings
from exceptions import AppError, EmptyFeedError, WorkflowNotFoundError
from models.feed import DatasetSummary
from models.mapping import CustomFieldUpdate, MappingAssignment
from models.schema import (
    CategoryCoverage,
    CategoryMappingUpdate,
    CategorySettings,
    QuickAddField,
    SchemaFieldCreate,
    SchemaFieldUpdate,
    SchemaMetadataUpdate,
    SchemaState,
)
from parsers import parse_file
from services import session_store
from services.workflow_service import FeedWorkflow

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def _schema_state(workflow: FeedWorkflow) -> SchemaState:
    mapped, total = workflow.schema.category_coverage()
    return SchemaState(
        feed_schema=workflow.full_schema(),
        unmapped_source_fields=workflow.schema.unmapped_source_fields,
        category_coverage=CategoryCoverage(mapped=mapped, total=total),
    )


# ===================
# UPLOAD ROUTES
# ===================

@router.post("")
async def upload_feed(file: UploadFile = File(..., description="CSV, JSON or XML feed")):
    """
    Upload and parse a feed file, starting a new workflow.

    Rejects files over the size limit and files that parse to nothing.
    """
    try:
        settings = get_settings()
        dataset = await parse_file(file, max_bytes=settings.max_upload_bytes)
        if dataset.is_empty:
            raise EmptyFeedError(dataset.file_name, dataset.file_type.value)

        workflow = session_store.create_workflow()
        workflow.load_dataset(dataset)
        return workflow.summary()

    except Exception as e:
        return handle_error(e)


@router.post("/from-history/{snapshot_id}")
async def start_from_upload_snapshot(snapshot_id: str):
    """Start a new workflow on a previously uploaded feed."""
    try:
        workflow = session_store.create_workflow()
        try:
            workflow.load_upload_snapshot(snapshot_id)
        except AppError:
            session_store.delete_workflow(workflow.workflow_id)
            raise
        return workflow.summary()

    except Exception as e:
        return handle_error(e)


@router.get("/{workflow_id}")
async def get_workflow(workflow_id: str):
    """Current stage and dataset summary."""
    try:
        return session_store.get_workflow(workflow_id).summary()
    except Exception as e:
        return handle_error(e)


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(workflow_id: str):
    """Discard a workflow session."""
    try:
        if session_store.delete_workflow(workflow_id) is None:
            raise WorkflowNotFoundError(workflow_id)
        return None
    except Exception as e:
        return handle_error(e)


@router.get("/{workflow_id}/rows")
async def get_rows(
    workflow_id: str,
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    search: Optional[str] = Query(None, description="Case-insensitive match on any value"),
):
    """Page through the parsed rows."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        rows = workflow.dataset.rows if workflow.dataset else []
        if search:
            needle = search.lower()
            rows = [row for row in rows if any(needle in value.lower() for value in row.values())]
        return {
            "headers": workflow.dataset.headers if workflow.dataset else [],
            "rows": rows[offset:offset + limit],
            "total": len(rows),
            "offset": offset,
            "limit": limit,
        }
    except Exception as e:
        return handle_error(e)


# ===================
# MAPPING ROUTES
# ===================

@router.get("/{workflow_id}/mapping")
async def get_mapping(workflow_id: str):
    """Mappings, custom fields and unmapped source fields."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        return workflow.require_mapping().state()
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/mapping/auto")
async def auto_map(workflow_id: str):
    """Re-run substring auto-mapping."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        mapping = workflow.require_mapping()
        mapping.auto_map()
        workflow.mapping_changed()
        return mapping.state()
    except Exception as e:
        return handle_error(e)


@router.put("/{workflow_id}/mapping/{target}")
async def set_mapping(workflow_id: str, target: str, data: MappingAssignment):
    """Map one target field to a source header (or "not_mapped")."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        mapping = workflow.require_mapping()
        mapping.set_mapping(target, data.source_field)
        workflow.mapping_changed()
        return mapping.state()
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/mapping/custom-fields", status_code=201)
async def add_custom_field(workflow_id: str):
    """Add an unmapped custom field."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.require_mapping().add_custom_field()
        workflow.mapping_changed()
        return workflow.mapping.state()
    except Exception as e:
        return handle_error(e)


@router.patch("/{workflow_id}/mapping/custom-fields/{custom_field_id}")
async def update_custom_field(workflow_id: str, custom_field_id: str, data: CustomFieldUpdate):
    """Rename a custom field or change its source."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.require_mapping().update_custom_field(custom_field_id, data)
        workflow.mapping_changed()
        return workflow.mapping.state()
    except Exception as e:
        return handle_error(e)


@router.delete("/{workflow_id}/mapping/custom-fields/{custom_field_id}")
async def remove_custom_field(workflow_id: str, custom_field_id: str):
    """Remove a custom field."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.require_mapping().remove_custom_field(custom_field_id)
        workflow.mapping_changed()
        return workflow.mapping.state()
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/mapping/confirm")
async def confirm_mapping(workflow_id: str):
    """
    Validate required fields and derive the schema.

    Fails with MAPPING_MISSING_REQUIRED_FIELDS listing what is missing.
    """
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.confirm_mapping()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/mapping/load/{snapshot_id}")
async def load_mapping_snapshot(workflow_id: str, snapshot_id: str):
    """Restore a mapping from history."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.load_mapping_snapshot(snapshot_id)
        return workflow.mapping.state()
    except Exception as e:
        return handle_error(e)


# ===================
# SCHEMA ROUTES
# ===================

@router.get("/{workflow_id}/schema")
async def get_schema(workflow_id: str):
    """The schema being designed."""
    try:
        return _schema_state(session_store.get_workflow(workflow_id))
    except Exception as e:
        return handle_error(e)


@router.patch("/{workflow_id}/schema")
async def update_schema_metadata(workflow_id: str, data: SchemaMetadataUpdate):
    """Change schema name and/or description."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        if data.name is not None:
            workflow.schema.set_schema_name(data.name)
        if data.description is not None:
            workflow.schema.set_schema_description(data.description)
        workflow.schema_changed()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/schema/fields", status_code=201)
async def add_field(workflow_id: str, data: SchemaFieldCreate):
    """Add a custom schema field. Names must be unique."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.schema.add_field(data)
        workflow.schema_changed()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/schema/fields/quick-add", status_code=201)
async def quick_add_field(workflow_id: str, data: QuickAddField):
    """Turn an unmapped source column into a custom field."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.schema.quick_add_field(data.source_field)
        workflow.schema_changed()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.patch("/{workflow_id}/schema/fields/{name}")
async def update_field(workflow_id: str, name: str, data: SchemaFieldUpdate):
    """Update a schema field. Required core fields cannot be renamed or made optional."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.schema.update_field(name, data)
        workflow.schema_changed()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.delete("/{workflow_id}/schema/fields/{name}")
async def remove_field(workflow_id: str, name: str):
    """Remove a schema field. Required core fields cannot be removed."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.schema.remove_field(name)
        workflow.schema_changed()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.put("/{workflow_id}/schema/categories/settings")
async def update_category_settings(workflow_id: str, data: CategorySettings):
    """
    Change category format and/or separator.

    Existing mappings are kept; call the auto route to apply the settings
    to new categories.
    """
    try:
        workflow = session_store.get_workflow(workflow_id)
        if data.category_format is not None:
            workflow.schema.set_category_format(data.category_format)
        if data.category_separator is not None:
            workflow.schema.set_category_separator(data.category_separator)
        workflow.schema_changed()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/schema/categories/auto")
async def auto_generate_categories(workflow_id: str):
    """Build category mappings from the feed's category column."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.configure_categories()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.put("/{workflow_id}/schema/categories")
async def update_category_mapping(workflow_id: str, data: CategoryMappingUpdate):
    """Hand-edit one category's target."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.schema.update_category_mapping(data.source_category, data.target_category)
        workflow.schema_changed()
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/schema/load/{snapshot_id}")
async def load_schema_snapshot(workflow_id: str, snapshot_id: str):
    """Restore a schema from history."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        workflow.load_schema_snapshot(snapshot_id)
        return _schema_state(workflow)
    except Exception as e:
        return handle_error(e)


@router.post("/{workflow_id}/finalize")
async def finalize(workflow_id: str):
    """Snapshot the schema to history. Requires a confirmed mapping."""
    try:
        workflow = session_store.get_workflow(workflow_id)
        snapshot = workflow.finalize()
        return {
            "workflow": workflow.summary(),
            "schemaSnapshot": snapshot,
            "dataset": DatasetSummary.from_dataset(workflow.dataset) if workflow.dataset else None,
        }
    except Exception as e:
        return handle_error(e)
