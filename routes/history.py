"""
History API routes.

Read and clear recorded upload, mapping and schema snapshots.
"""

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from exceptions import AppError
from models.history import SnapshotKind
from services.history_service import get_history_service

logger = structlog.get_logger(__name__)

router = APIRouter()


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


@router.get("/{kind}")
async def list_snapshots(
    kind: SnapshotKind,
    limit: int = Query(50, ge=1, le=500),
):
    """
    List snapshots of one kind, newest first.

    Upload snapshots are listed without their full rows.
    """
    try:
        snapshots = get_history_service().list(kind)[:limit]
        if kind is SnapshotKind.UPLOAD:
            snapshots = [s.model_copy(update={"full_rows": None}) for s in snapshots]
        return {"data": snapshots, "total": len(snapshots)}
    except Exception as e:
        return handle_error(e)


@router.get("/{kind}/{snapshot_id}")
async def get_snapshot(kind: SnapshotKind, snapshot_id: str):
    """Get one snapshot."""
    try:
        return get_history_service().get(kind, snapshot_id)
    except Exception as e:
        return handle_error(e)


@router.delete("", status_code=204)
async def clear_history(
    kind: Optional[SnapshotKind] = Query(None, description="Clear only this kind"),
):
    """Clear all snapshots, or only those of one kind."""
    try:
        get_history_service().clear(kind)
        return None
    except Exception as e:
        return handle_error(e)
