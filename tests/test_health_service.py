"""Unit tests for the health rollup calculator and its invocation policy."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from types import SimpleNamespace
from datetime import datetime

import pytest

from app.models.activity_log import VehicleActivityLog
from app.models.enums import Health
from app.services import issue_service
from app.services.health_service import (
    AutoHealth, ManualHealth, compute_health, health_state, refresh_vehicle_health,
)
from app.services.vehicle_service import set_manual_health, clear_health_override


def issue(priority, status="Open", deleted_at=None):
    return SimpleNamespace(priority=priority, status=status, deleted_at=deleted_at)


class TestComputeHealth:
    def test_no_issues_is_excellent(self):
        assert compute_health([]) == Health.EXCELLENT

    def test_one_dangerous_grounds(self):
        assert compute_health([issue("Dangerous")]) == Health.GROUNDED

    def test_dangerous_beats_important(self):
        assert compute_health([issue("Dangerous")] + [issue("Important")] * 5) == Health.GROUNDED

    def test_three_important_is_ok(self):
        assert compute_health([issue("Important")] * 3) == Health.OK

    def test_two_important_is_excellent(self):
        assert compute_health([issue("Important")] * 2) == Health.EXCELLENT

    def test_low_priorities_ignored(self):
        issues = [issue("Nice to Fix")] * 4 + [issue("Aesthetic")] * 4 + [issue(None)] * 4
        assert compute_health(issues) == Health.EXCELLENT

    def test_closed_issues_refiltered(self):
        assert compute_health([issue("Dangerous", status="Closed")]) == Health.EXCELLENT

    def test_deleted_issues_refiltered(self):
        assert compute_health([issue("Dangerous", deleted_at=datetime(2030, 1, 1))]) == Health.EXCELLENT

    def test_threshold_is_configurable(self):
        assert compute_health([issue("Important")] * 2, important_threshold=2) == Health.OK


class TestHealthState:
    def test_auto_when_not_overridden(self):
        v = SimpleNamespace(health="OK", health_override=False, health_set_by=None, health_set_at=None)
        assert health_state(v) == AutoHealth(Health.OK)

    def test_manual_carries_who_and_when(self):
        when = datetime(2030, 6, 1, 9, 0)
        v = SimpleNamespace(health="Excellent", health_override=True, health_set_by="u-1", health_set_at=when)
        assert health_state(v) == ManualHealth(Health.EXCELLENT, "u-1", when)


class TestRollupOnIssueMutations:
    @pytest.mark.asyncio
    async def test_dangerous_issue_grounds_vehicle(self, db, make_vehicle, admin):
        v = make_vehicle()
        await issue_service.create_issue(db, v.id, "Brake failure", admin, priority="Dangerous")
        db.refresh(v)
        assert v.health == "Grounded"

    @pytest.mark.asyncio
    async def test_closing_third_important_restores_excellent(self, db, make_vehicle, admin):
        v = make_vehicle()
        created = [await issue_service.create_issue(db, v.id, f"Worn part {i}", admin, priority="Important")
                   for i in range(3)]
        db.refresh(v)
        assert v.health == "OK"

        await issue_service.close_issue(db, created[2].id, admin)
        db.refresh(v)
        assert v.health == "Excellent"
        assert created[2].closed_at is not None

    @pytest.mark.asyncio
    async def test_soft_delete_triggers_recompute(self, db, make_vehicle, admin):
        v = make_vehicle()
        bad = await issue_service.create_issue(db, v.id, "Tyre blowout", admin, priority="Dangerous")
        await issue_service.soft_delete_issue(db, bad.id, "Logged against wrong vehicle", admin)
        db.refresh(v)
        assert v.health == "Excellent"

    @pytest.mark.asyncio
    async def test_override_is_sticky(self, db, make_vehicle, admin):
        v = make_vehicle()
        await set_manual_health(db, v.id, Health.EXCELLENT, "Cleared for yard moves", admin)

        await issue_service.create_issue(db, v.id, "Steering play", admin, priority="Dangerous")
        db.refresh(v)
        assert v.health == "Excellent"
        assert v.health_override is True

    @pytest.mark.asyncio
    async def test_clearing_override_resumes_rollup_on_next_mutation(self, db, make_vehicle, admin):
        v = make_vehicle()
        await set_manual_health(db, v.id, Health.EXCELLENT, "Manual", admin)
        await issue_service.create_issue(db, v.id, "Steering play", admin, priority="Dangerous")

        await clear_health_override(db, v.id, admin)
        db.refresh(v)
        assert v.health == "Excellent"          # not recomputed by the clear itself

        await issue_service.create_issue(db, v.id, "Scratch", admin, priority="Aesthetic")
        db.refresh(v)
        assert v.health == "Grounded"

    @pytest.mark.asyncio
    async def test_automatic_change_is_logged_as_system(self, db, make_vehicle, admin):
        v = make_vehicle()
        await issue_service.create_issue(db, v.id, "Oil leak", admin, priority="Dangerous")
        entries = db.query(VehicleActivityLog).filter(VehicleActivityLog.field_changed == "health").all()
        assert len(entries) == 1
        assert entries[0].user_id == "system"
        assert (entries[0].old_value, entries[0].new_value) == ("Excellent", "Grounded")

    @pytest.mark.asyncio
    async def test_unchanged_health_writes_no_log(self, db, make_vehicle, admin):
        v = make_vehicle()
        await refresh_vehicle_health(db, v.id, [])
        assert db.query(VehicleActivityLog).count() == 0
