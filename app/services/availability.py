# app/services/availability.py
"""
Booking availability engine.

Pure functions, leaves first:
  - has_conflict / find_conflicts: half-open interval overlap against one
    vehicle's bookings
  - eligible_vehicles: fleet filter independent of any time window
  - available_vehicles: eligibility intersected with "no conflict"
  - insurance_expires_during: per-vehicle warning flag for a window

Inputs are anything with the ORM attribute names (Vehicle / Booking rows or
schema objects). Nothing here touches the database.
"""

from datetime import datetime
from typing import Iterable, Optional

from app.models.enums import BookingStatus, Health, VehicleStatus

# Bookings in these states never block a vehicle in the availability view
RESOLVER_IGNORED_STATUSES = {BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value}


def _status(value) -> str:
    return value.value if isinstance(value, BookingStatus) else value


def find_conflicts(bookings: Iterable, start: datetime, end: datetime,
                   exclude_id: Optional[int] = None) -> list:
    """
    Return every booking whose window overlaps [start, end).
    Cancelled bookings and the booking with id == exclude_id are skipped.
    The caller is responsible for passing one vehicle's bookings only.
    """
    conflicts = []
    for booking in bookings:
        if _status(booking.status) == BookingStatus.CANCELLED.value:
            continue
        if exclude_id is not None and booking.id == exclude_id:
            continue
        if start < booking.end_datetime and end > booking.start_datetime:
            conflicts.append(booking)
    return conflicts


def has_conflict(bookings: Iterable, start: datetime, end: datetime,
                 exclude_id: Optional[int] = None) -> bool:
    """True iff [start, end) overlaps any non-cancelled booking other than exclude_id."""
    return bool(find_conflicts(bookings, start, end, exclude_id))


def is_eligible(vehicle) -> bool:
    """A vehicle can be offered for hire at all (ignores time windows)."""
    if getattr(vehicle, "deleted_at", None) is not None:
        return False
    if vehicle.is_personal or vehicle.on_hire:
        return False
    # Either grounding signal alone is enough
    if vehicle.health == Health.GROUNDED.value or vehicle.status == VehicleStatus.GROUNDED.value:
        return False
    return True


def eligible_vehicles(fleet: Iterable) -> list:
    return [v for v in fleet if is_eligible(v)]


def available_vehicles(fleet: Iterable, bookings: Iterable, start: datetime, end: datetime,
                       exclude_booking_id: Optional[int] = None) -> list:
    """
    Eligible vehicles with no blocking booking inside [start, end).
    Completed bookings are ignored here on top of Cancelled ones.
    Fleet input order is preserved.
    """
    by_vehicle: dict = {}
    for b in bookings:
        if _status(b.status) in RESOLVER_IGNORED_STATUSES:
            continue
        if exclude_booking_id is not None and b.id == exclude_booking_id:
            continue
        by_vehicle.setdefault(b.vehicle_id, []).append(b)

    return [
        v for v in eligible_vehicles(fleet)
        if not has_conflict(by_vehicle.get(v.id, []), start, end)
    ]


def insurance_expires_during(vehicle, start: datetime, end: datetime) -> bool:
    """
    True when the vehicle's insurance expiry date falls within the booking's
    calendar days, first and last day included. A flag for the booking form,
    never a reason to hide the vehicle.
    """
    expiry = getattr(vehicle, "insurance_expiry", None)
    if expiry is None:
        return False
    if isinstance(expiry, datetime):
        expiry = expiry.date()
    return start.date() <= expiry <= end.date()
