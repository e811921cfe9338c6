# app/services/booking_service.py
"""
Booking store and write path.

Reads made by the availability view go stale, so every create / edit that
touches a vehicle or a time window re-reads that vehicle's bookings and
re-runs the overlap check immediately before committing. The check-then-write
sequence is serialised per vehicle by a row lock on the vehicle
(SELECT ... FOR UPDATE) taken before the re-read. On PostgreSQL the
bookings_no_overlap exclusion constraint is the final authority and its
violations surface as ConflictError.

Status machine:
    Draft ⇄ Active → Completed
    Draft → Advance Payment Not Paid → Active
    Draft / Active / Advance Payment Not Paid → Cancelled
Completed and Cancelled are terminal.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.booking import Booking, EXCLUSION_CONSTRAINT
from app.models.enums import BookingStatus, BookingType
from app.services.availability import available_vehicles, find_conflicts, is_eligible
from app.services.permissions import Actor, CREATE, EDIT, require
from app.services.vehicle_service import get_vehicle, list_vehicles
from app.utils.datetime_utils import to_naive_utc
from app.utils.logger import get_audit_logger, get_logger

logger = get_logger(__name__)
audit = get_audit_logger()

S = BookingStatus
ALLOWED_TRANSITIONS = {
    S.DRAFT: {S.ACTIVE, S.ADVANCE_PAYMENT_NOT_PAID, S.CANCELLED},
    S.ACTIVE: {S.DRAFT, S.COMPLETED, S.CANCELLED},
    S.ADVANCE_PAYMENT_NOT_PAID: {S.ACTIVE, S.CANCELLED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
}
CREATABLE_STATUSES = {S.DRAFT, S.ACTIVE, S.ADVANCE_PAYMENT_NOT_PAID}

EDITABLE_FIELDS = {
    "vehicle_id", "client_name", "client_phone", "client_email",
    "start_datetime", "end_datetime", "start_location", "end_location",
    "status", "booking_type", "chauffeur_id", "chauffeur_name", "invoice_number", "notes",
}
IMMUTABLE_FIELDS = {"health_at_booking"}


# ── Store ────────────────────────────────────────────────────────────────────

def list_bookings(db: Session, branch_id: Optional[int] = None, vehicle_id: Optional[int] = None,
                  status: Optional[str] = None):
    q = db.query(Booking)
    if branch_id is not None:
        q = q.filter(Booking.branch_id == branch_id)
    if vehicle_id is not None:
        q = q.filter(Booking.vehicle_id == vehicle_id)
    if status:
        q = q.filter(Booking.status == status)
    return q.order_by(Booking.start_datetime.desc()).all()


def list_by_vehicle(db: Session, vehicle_id: int):
    return list_bookings(db, vehicle_id=vehicle_id)


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


# ── Validation ───────────────────────────────────────────────────────────────

def validate_window(start: Optional[datetime], end: Optional[datetime]):
    if start is None or end is None:
        raise ValidationError("Start and end date/time are required")
    if end <= start:
        raise ValidationError("End date/time must be after start date/time")


def validate_transition(current, new):
    current, new = BookingStatus(current), BookingStatus(new)
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS[current]:
        raise ValidationError(f"Cannot change booking status from {current.value} to {new.value}")


def _validate_contact(phone: Optional[str], email: Optional[str]):
    if not (phone or "").strip() and not (email or "").strip():
        raise ValidationError("Either a phone number or an email address is required")


def _validate_booking_type(booking_type):
    try:
        BookingType(booking_type)
    except ValueError:
        raise ValidationError(f"Unknown booking type: {booking_type!r}") from None


def _validate_new_booking(data: dict):
    if not data.get("vehicle_id"):
        raise ValidationError("A vehicle must be selected")
    if not data.get("branch_id"):
        raise ValidationError("A branch must be selected")
    if not (data.get("client_name") or "").strip():
        raise ValidationError("Client name is required")
    _validate_contact(data.get("client_phone"), data.get("client_email"))
    validate_window(data.get("start_datetime"), data.get("end_datetime"))
    _validate_booking_type(data.get("booking_type", BookingType.SELF_DRIVE.value))
    try:
        status = BookingStatus(data.get("status", BookingStatus.DRAFT.value))
    except ValueError:
        raise ValidationError(f"Unknown booking status: {data.get('status')!r}") from None
    if status not in CREATABLE_STATUSES:
        raise ValidationError(f"A booking cannot be created as {status.value}")


def _commit(db: Session):
    """Commit, turning storage constraint violations into domain errors."""
    try:
        db.commit()
    except sa_exc.IntegrityError as e:
        db.rollback()
        message = str(e.orig)
        if EXCLUSION_CONSTRAINT in message:
            audit.warning(f"[BOOKING] storage rejected overlapping booking: {message}")
            raise ConflictError("Booking conflicts with existing booking") from e
        if "bookings_end_after_start" in message:
            raise ValidationError("End date/time must be after start date/time") from e
        raise


def _raise_conflict(vehicle, start, end, conflicts):
    ids = [b.id for b in conflicts]
    audit.warning(f"[BOOKING] conflict on {vehicle.reg_number} for {start} → {end} with bookings {ids}")
    raise ConflictError("Booking conflicts with existing booking", ids)


# ── Write path ───────────────────────────────────────────────────────────────

async def create_booking(db: Session, data: dict, actor: Actor) -> Booking:
    """
    Validate, re-check overlap against fresh data under the vehicle row lock, then commit.
    health_at_booking is copied from the vehicle at this moment and never rewritten.
    """
    data = {k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}
    data["start_datetime"] = to_naive_utc(data.get("start_datetime"))
    data["end_datetime"] = to_naive_utc(data.get("end_datetime"))
    _validate_new_booking(data)
    require(actor, CREATE, data["branch_id"])

    vehicle_id = data["vehicle_id"]
    start, end = data["start_datetime"], data["end_datetime"]
    reference = data.pop("booking_reference", None)

    # Row lock first, then re-read: concurrent writers for this vehicle queue here
    vehicle = get_vehicle(db, vehicle_id, lock=True)
    if not is_eligible(vehicle):
        logger.warning(f"[BOOKING] {vehicle.reg_number} is not eligible for hire but was booked directly")

    conflicts = find_conflicts(list_by_vehicle(db, vehicle.id), start, end)
    if conflicts:
        db.rollback()
        _raise_conflict(vehicle, start, end, conflicts)

    now = datetime.utcnow()
    booking = Booking(
        **data,
        booking_reference=reference or f"BK-{uuid.uuid4().hex[:8].upper()}",
        health_at_booking=vehicle.health,
        created_by=actor.user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(booking)
    _commit(db)

    logger.info(f"[BOOKING] {booking.booking_reference} created on {vehicle.reg_number} "
                f"{start} → {end} status={booking.status}")
    return booking


async def update_booking(db: Session, booking_id: int, changes: dict, actor: Actor) -> Booking:
    """
    Partial edit. Status changes follow the status machine; any change to the
    vehicle or window is re-validated against the target vehicle's other bookings.
    """
    booking = get_booking(db, booking_id)
    require(actor, EDIT, booking.branch_id)

    if BookingStatus(booking.status).is_terminal:
        raise ValidationError(f"A {booking.status} booking can no longer be edited")

    changes = {k: v for k, v in changes.items() if k not in IMMUTABLE_FIELDS}
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
    for key in ("start_datetime", "end_datetime"):
        if key in changes:
            changes[key] = to_naive_utc(changes[key])

    if "status" in changes:
        try:
            validate_transition(booking.status, changes["status"])
        except ValueError:
            raise ValidationError(f"Unknown booking status: {changes['status']!r}") from None
        changes["status"] = BookingStatus(changes["status"]).value
    if "vehicle_id" in changes and not changes["vehicle_id"]:
        raise ValidationError("A vehicle must be selected")
    if "booking_type" in changes:
        _validate_booking_type(changes["booking_type"])
    if "client_name" in changes and not (changes["client_name"] or "").strip():
        raise ValidationError("Client name is required")
    if "client_phone" in changes or "client_email" in changes:
        _validate_contact(changes.get("client_phone", booking.client_phone),
                          changes.get("client_email", booking.client_email))

    start = changes.get("start_datetime", booking.start_datetime)
    end = changes.get("end_datetime", booking.end_datetime)
    vehicle_id = changes.get("vehicle_id", booking.vehicle_id)
    window_changed = (
        start != booking.start_datetime
        or end != booking.end_datetime
        or vehicle_id != booking.vehicle_id
    )
    cancelling = changes.get("status") == BookingStatus.CANCELLED.value

    if window_changed:
        validate_window(start, end)
    if window_changed and not cancelling:
        vehicle = get_vehicle(db, vehicle_id, lock=True)
        conflicts = find_conflicts(list_by_vehicle(db, vehicle.id), start, end, exclude_id=booking.id)
        if conflicts:
            db.rollback()
            _raise_conflict(vehicle, start, end, conflicts)
    _apply(booking, changes)
    _commit(db)

    logger.info(f"[BOOKING] {booking.booking_reference} updated: {sorted(changes)}")
    return booking


def _apply(booking: Booking, changes: dict):
    for key, value in changes.items():
        setattr(booking, key, value)
    booking.updated_at = datetime.utcnow()


async def cancel_booking(db: Session, booking_id: int, actor: Actor, reason: Optional[str] = None) -> Booking:
    changes = {"status": BookingStatus.CANCELLED.value}
    if reason:
        existing = get_booking(db, booking_id).notes
        changes["notes"] = f"{existing}\nCancelled: {reason}" if existing else f"Cancelled: {reason}"
    return await update_booking(db, booking_id, changes, actor)


# ── Availability (store-backed) ──────────────────────────────────────────────

def resolve_availability(db: Session, start: datetime, end: datetime, category_id: Optional[int] = None,
                         branch_id: Optional[int] = None, exclude_booking_id: Optional[int] = None):
    """Load the fleet slice and its bookings, then run the pure resolver."""
    start, end = to_naive_utc(start), to_naive_utc(end)
    validate_window(start, end)
    fleet = list_vehicles(db, branch_id=branch_id, category_id=category_id)
    vehicle_ids = [v.id for v in fleet]
    bookings = []
    if vehicle_ids:
        bookings = (
            db.query(Booking)
            .filter(
                Booking.vehicle_id.in_(vehicle_ids),
                Booking.start_datetime < end,
                Booking.end_datetime > start,
            )
            .all()
        )
    return available_vehicles(fleet, bookings, start, end, exclude_booking_id=exclude_booking_id)


def edit_candidates(db: Session, booking_id: int, start: Optional[datetime] = None,
                    end: Optional[datetime] = None, category_id: Optional[int] = None):
    """
    Vehicles the edit form may offer for an existing booking. The booking's own
    vehicle is always kept in the list, first when it has to be put back
    because it has since become ineligible or been booked over.
    """
    booking = get_booking(db, booking_id)
    start = start or booking.start_datetime
    end = end or booking.end_datetime
    candidates = resolve_availability(db, start, end, category_id=category_id, exclude_booking_id=booking.id)
    if not any(v.id == booking.vehicle_id for v in candidates):
        current = get_vehicle(db, booking.vehicle_id, include_deleted=True)
        candidates.insert(0, current)
    return candidates
