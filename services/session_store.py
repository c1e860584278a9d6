"""
In-memory workflow sessions.
Stores FeedWorkflow objects with TTL expiration.
Single-server only (one user works on one feed at a time).
"""
from datetime import datetime, timedelta
from typing import Optional

from config.settings import get_settings
from exceptions import WorkflowNotFoundError
from services.history_service import get_history_service
from services.workflow_service import FeedWorkflow

_sessions: dict[str, tuple[datetime, FeedWorkflow]] = {}


def _ttl() -> timedelta:
    return timedelta(minutes=get_settings().session_ttl_minutes)


def create_workflow() -> FeedWorkflow:
    """Start a workflow backed by the process-wide history repository."""
    workflow = FeedWorkflow(get_history_service())
    _sessions[workflow.workflow_id] = (datetime.now() + _ttl(), workflow)
    _cleanup_expired()
    return workflow


def get_workflow(workflow_id: str) -> FeedWorkflow:
    """
    Retrieve a workflow and extend its expiry.

    Raises:
        WorkflowNotFoundError: If unknown or expired
    """
    entry = _sessions.get(workflow_id)
    if entry is None:
        raise WorkflowNotFoundError(workflow_id)
    expires_at, workflow = entry
    if datetime.now() > expires_at:
        del _sessions[workflow_id]
        raise WorkflowNotFoundError(workflow_id)
    _sessions[workflow_id] = (datetime.now() + _ttl(), workflow)
    return workflow


def delete_workflow(workflow_id: str) -> Optional[FeedWorkflow]:
    """Drop a workflow. Returns it, or None if it was not there."""
    entry = _sessions.pop(workflow_id, None)
    return entry[1] if entry else None


def _cleanup_expired() -> None:
    """Remove all expired entries."""
    now = datetime.now()
    expired = [k for k, (exp, _) in _sessions.items() if now > exp]
    for k in expired:
        del _sessions[k]
