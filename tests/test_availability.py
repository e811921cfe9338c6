"""Unit tests for the overlap checker, eligibility filter and availability resolver."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from types import SimpleNamespace
from datetime import date, datetime

import pytest

from app.models.enums import BookingStatus
from app.services.availability import (
    available_vehicles, eligible_vehicles, find_conflicts, has_conflict, insurance_expires_during, is_eligible,
)


def d(n):
    return datetime(2030, 6, n)


def make_booking(id=1, start=1, end=5, status="Active", vehicle_id=1):
    return SimpleNamespace(id=id, vehicle_id=vehicle_id, start_datetime=d(start),
                           end_datetime=d(end), status=status)


def make_vehicle(id=1, is_personal=False, on_hire=False, health="Excellent", status="Available",
                 deleted_at=None):
    return SimpleNamespace(id=id, is_personal=is_personal, on_hire=on_hire, health=health,
                           status=status, deleted_at=deleted_at)


class TestHasConflict:
    def test_overlap_detected(self):
        assert has_conflict([make_booking(start=1, end=5)], d(4), d(8))

    def test_candidate_inside_existing(self):
        assert has_conflict([make_booking(start=1, end=10)], d(3), d(4))

    def test_existing_inside_candidate(self):
        assert has_conflict([make_booking(start=3, end=4)], d(1), d(10))

    @pytest.mark.parametrize("a,b", [
        ((1, 5), (4, 8)), ((1, 5), (5, 8)), ((2, 3), (1, 9)), ((1, 2), (3, 4)), ((6, 9), (1, 6)),
    ])
    def test_overlap_is_symmetric(self, a, b):
        forward = has_conflict([make_booking(start=a[0], end=a[1])], d(b[0]), d(b[1]))
        backward = has_conflict([make_booking(start=b[0], end=b[1])], d(a[0]), d(a[1]))
        assert forward == backward

    def test_touching_windows_do_not_conflict(self):
        existing = [make_booking(start=5, end=10)]
        assert not has_conflict(existing, d(10), d(12))   # starts when existing ends
        assert not has_conflict(existing, d(1), d(5))     # ends when existing starts

    @pytest.mark.parametrize("status", ["Cancelled", BookingStatus.CANCELLED])
    def test_cancelled_never_conflicts(self, status):
        assert not has_conflict([make_booking(start=1, end=30, status=status)], d(2), d(3))

    def test_completed_still_counts_for_overlap_checker(self):
        assert has_conflict([make_booking(status="Completed")], d(2), d(3))

    def test_self_excluded_on_edit(self):
        own = make_booking(id=7, start=1, end=5)
        assert not has_conflict([own], d(1), d(5), exclude_id=7)
        assert not has_conflict([own], d(2), d(6), exclude_id=7)

    def test_exclusion_only_skips_that_booking(self):
        bookings = [make_booking(id=7, start=1, end=5), make_booking(id=8, start=5, end=9)]
        assert has_conflict(bookings, d(2), d(6), exclude_id=7)

    def test_empty_list(self):
        assert not has_conflict([], d(1), d(2))

    def test_find_conflicts_returns_blocking_bookings(self):
        a, b, c = make_booking(id=1, start=1, end=3), make_booking(id=2, start=4, end=6), make_booking(id=3, start=8, end=9)
        assert [x.id for x in find_conflicts([a, b, c], d(2), d(5))] == [1, 2]


class TestEligibility:
    def test_plain_vehicle_is_eligible(self):
        assert is_eligible(make_vehicle())

    def test_personal_vehicle_excluded_even_when_healthy(self):
        assert not is_eligible(make_vehicle(is_personal=True, health="Excellent"))

    def test_on_hire_excluded(self):
        assert not is_eligible(make_vehicle(on_hire=True))

    def test_grounded_health_excluded(self):
        assert not is_eligible(make_vehicle(health="Grounded"))

    def test_grounded_status_excluded_with_good_health(self):
        assert not is_eligible(make_vehicle(health="Excellent", status="Grounded"))

    def test_ok_health_still_eligible(self):
        assert is_eligible(make_vehicle(health="OK"))

    def test_soft_deleted_excluded(self):
        assert not is_eligible(make_vehicle(deleted_at=datetime(2030, 1, 1)))

    def test_filter_preserves_order_and_does_not_mutate(self):
        fleet = [make_vehicle(id=3), make_vehicle(id=1, on_hire=True), make_vehicle(id=2)]
        snapshot = list(fleet)
        assert [v.id for v in eligible_vehicles(fleet)] == [3, 2]
        assert fleet == snapshot


class TestAvailableVehicles:
    def test_overlapping_booking_excludes_vehicle(self):
        v = make_vehicle(id=1)
        b1 = make_booking(id=1, vehicle_id=1, start=1, end=5, status="Active")
        assert available_vehicles([v], [b1], d(4), d(8)) == []

    def test_back_to_back_request_includes_vehicle(self):
        v = make_vehicle(id=1)
        b1 = make_booking(id=1, vehicle_id=1, start=1, end=5, status="Active")
        assert available_vehicles([v], [b1], d(5), d(8)) == [v]

    def test_cancelled_booking_frees_vehicle(self):
        v = make_vehicle(id=1)
        b1 = make_booking(id=1, vehicle_id=1, start=1, end=5, status="Cancelled")
        assert available_vehicles([v], [b1], d(4), d(8)) == [v]

    def test_completed_booking_frees_vehicle(self):
        v = make_vehicle(id=1)
        b1 = make_booking(id=1, vehicle_id=1, start=1, end=5, status="Completed")
        assert available_vehicles([v], [b1], d(2), d(3)) == [v]

    def test_other_vehicles_bookings_ignored(self):
        v1, v2 = make_vehicle(id=1), make_vehicle(id=2)
        b = make_booking(id=1, vehicle_id=2, start=1, end=10)
        assert available_vehicles([v1, v2], [b], d(2), d(3)) == [v1]

    def test_excluded_booking_id_does_not_block_its_vehicle(self):
        v = make_vehicle(id=1)
        b1 = make_booking(id=11, vehicle_id=1, start=1, end=5)
        assert available_vehicles([v], [b1], d(2), d(6), exclude_booking_id=11) == [v]

    def test_ineligible_vehicles_never_returned(self):
        fleet = [make_vehicle(id=1, is_personal=True), make_vehicle(id=2, health="Grounded"),
                 make_vehicle(id=3, status="Grounded"), make_vehicle(id=4, on_hire=True)]
        assert available_vehicles(fleet, [], d(1), d(2)) == []

    def test_result_keeps_fleet_order(self):
        fleet = [make_vehicle(id=5), make_vehicle(id=2), make_vehicle(id=9)]
        assert [v.id for v in available_vehicles(fleet, [], d(1), d(2))] == [5, 2, 9]


class TestInsuranceExpiry:
    # Window: 10 June 14:00 → 15 June 09:00
    start, end = datetime(2030, 6, 10, 14, 0), datetime(2030, 6, 15, 9, 0)

    @pytest.mark.parametrize("expiry,expected", [
        (date(2030, 6, 9), False),
        (date(2030, 6, 10), True),     # first day, even though it lapses before pickup time
        (date(2030, 6, 12), True),
        (date(2030, 6, 15), True),     # last day
        (date(2030, 6, 16), False),
    ])
    def test_boundary_days(self, expiry, expected):
        vehicle = SimpleNamespace(insurance_expiry=expiry)
        assert insurance_expires_during(vehicle, self.start, self.end) is expected

    def test_no_expiry_recorded(self):
        assert insurance_expires_during(SimpleNamespace(insurance_expiry=None), self.start, self.end) is False

    def test_flag_does_not_affect_availability(self):
        vehicle = make_vehicle()
        vehicle.insurance_expiry = date(2030, 6, 2)
        assert available_vehicles([vehicle], [], d(1), d(3)) == [vehicle]
        assert insurance_expires_during(vehicle, d(1), d(3)) is True
