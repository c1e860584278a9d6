"""
Unit tests for in-memory workflow sessions.
"""

from datetime import datetime, timedelta

import pytest

from exceptions import WorkflowNotFoundError
from services import session_store


class TestSessionStore:

    def test_create_and_get(self):
        workflow = session_store.create_workflow()

        assert session_store.get_workflow(workflow.workflow_id) is workflow

    def test_unknown_id(self):
        with pytest.raises(WorkflowNotFoundError) as exc_info:
            session_store.get_workflow("nope")

        assert exc_info.value.code == "WORKFLOW_NOT_FOUND"
        assert exc_info.value.status_code == 404

    def test_delete(self):
        workflow = session_store.create_workflow()

        assert session_store.delete_workflow(workflow.workflow_id) is workflow
        assert session_store.delete_workflow(workflow.workflow_id) is None
        with pytest.raises(WorkflowNotFoundError):
            session_store.get_workflow(workflow.workflow_id)

    def test_expired_session_is_dropped(self):
        workflow = session_store.create_workflow()
        session_store._sessions[workflow.workflow_id] = (datetime.now() - timedelta(seconds=1), workflow)

        with pytest.raises(WorkflowNotFoundError):
            session_store.get_workflow(workflow.workflow_id)
        assert workflow.workflow_id not in session_store._sessions

    def test_get_extends_expiry(self):
        workflow = session_store.create_workflow()
        soon = datetime.now() + timedelta(seconds=5)
        session_store._sessions[workflow.workflow_id] = (soon, workflow)

        session_store.get_workflow(workflow.workflow_id)

        assert session_store._sessions[workflow.workflow_id][0] > soon

    def test_create_cleans_up_expired(self):
        stale = session_store.create_workflow()
        session_store._sessions[stale.workflow_id] = (datetime.now() - timedelta(minutes=1), stale)

        session_store.create_workflow()

        assert stale.workflow_id not in session_store._sessions

    def test_workflows_share_process_history(self):
        first = session_store.create_workflow()
        second = session_store.create_workflow()

        assert first.history.repository is second.history.repository
