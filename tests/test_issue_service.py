"""Tests for issue mutations and their audit trail."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from unittest.mock import ANY, AsyncMock, MagicMock, patch

import pytest

from app.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.models.issue import Issue, IssueDeletion
from app.services import issue_service
from app.services.permissions import Actor


class TestIssueService:
    @pytest.mark.asyncio
    async def test_create_runs_rollup(self, db, make_vehicle, admin):
        v = make_vehicle()
        with patch("app.services.issue_service.refresh_vehicle_health", new_callable=AsyncMock) as mock_refresh:
            issue = await issue_service.create_issue(db, v.id, "  Cracked mirror ", admin, priority="Aesthetic")
            mock_refresh.assert_awaited_once()
        assert issue.description == "Cracked mirror"
        assert issue.status == "Open"
        assert issue.branch_id == v.branch_id

    @pytest.mark.asyncio
    async def test_unknown_priority_rejected(self, db, make_vehicle, admin):
        v = make_vehicle()
        with pytest.raises(ValidationError):
            await issue_service.create_issue(db, v.id, "Noise", admin, priority="Urgent")

    @pytest.mark.asyncio
    async def test_reopen_clears_closed_date(self, db, make_vehicle, admin):
        v = make_vehicle()
        issue = await issue_service.create_issue(db, v.id, "Noise", admin, priority="Important")
        await issue_service.close_issue(db, issue.id, admin)
        reopened = await issue_service.update_issue(db, issue.id, {"status": "Open"}, admin)
        assert reopened.closed_at is None

    @pytest.mark.asyncio
    async def test_non_editable_field_rejected(self, db, make_vehicle, admin):
        v = make_vehicle()
        issue = await issue_service.create_issue(db, v.id, "Noise", admin)
        with pytest.raises(ValidationError):
            await issue_service.update_issue(db, issue.id, {"vehicle_id": 42}, admin)

    @pytest.mark.asyncio
    async def test_soft_delete_writes_audit_row(self, db, make_vehicle, admin):
        v = make_vehicle()
        issue = await issue_service.create_issue(db, v.id, "Dent", admin, priority="Aesthetic")
        audit = await issue_service.soft_delete_issue(db, issue.id, "Duplicate report", admin)

        assert (audit.deleted_by, audit.deletion_reason, audit.description) == ("u-admin", "Duplicate report", "Dent")
        assert db.query(IssueDeletion).count() == 1
        assert db.query(Issue).filter(Issue.id == issue.id).first().deleted_at is not None
        assert issue_service.list_issues(db, vehicle_id=v.id) == []
        with pytest.raises(NotFoundError):
            issue_service.get_issue(db, issue.id)

    @pytest.mark.asyncio
    async def test_delete_requires_reason(self, db, make_vehicle, admin):
        v = make_vehicle()
        issue = await issue_service.create_issue(db, v.id, "Dent", admin)
        with pytest.raises(ValidationError):
            await issue_service.soft_delete_issue(db, issue.id, "   ", admin)
        assert db.query(IssueDeletion).count() == 0

    @pytest.mark.asyncio
    async def test_driver_cannot_report(self, db, make_vehicle, branch):
        v = make_vehicle()
        driver = Actor(user_id="u-drv", role="driver", branch_id=branch.id)
        with pytest.raises(PermissionDeniedError):
            await issue_service.create_issue(db, v.id, "Noise", driver)

    @pytest.mark.asyncio
    async def test_list_open_by_vehicle(self, db, make_vehicle, admin):
        v, other = make_vehicle(), make_vehicle()
        keep = await issue_service.create_issue(db, v.id, "A", admin)
        closed = await issue_service.create_issue(db, v.id, "B", admin)
        await issue_service.close_issue(db, closed.id, admin)
        await issue_service.create_issue(db, other.id, "C", admin)
        assert [i.id for i in issue_service.list_open_by_vehicle(db, v.id)] == [keep.id]

    @pytest.mark.asyncio
    async def test_rollup_locks_vehicle_before_reading_issues(self):
        calls = MagicMock()
        with patch("app.services.issue_service.get_vehicle", calls.get_vehicle), \
                patch("app.services.issue_service.list_open_by_vehicle", calls.list_open_by_vehicle), \
                patch("app.services.issue_service.refresh_vehicle_health", new_callable=AsyncMock) as mock_refresh:
            await issue_service._after_mutation(MagicMock(), 7)

        assert [name for name, _, _ in calls.mock_calls] == ["get_vehicle", "list_open_by_vehicle"]
        calls.get_vehicle.assert_called_once_with(ANY, 7, include_deleted=True, lock=True)
        mock_refresh.assert_awaited_once_with(ANY, 7, calls.list_open_by_vehicle.return_value)
