# app/services/vehicle_service.py
"""
Vehicle store and vehicle-level operations: intake, manual health,
location moves, on-hire, mileage and soft delete.
Every state change writes one activity-log entry in the same commit.
"""

import math
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import ConflictError, IntegrityError, NotFoundError, ValidationError
from app.models.booking import Booking
from app.models.enums import BookingStatus, Health, VehicleStatus
from app.models.mileage_log import MileageLog
from app.models.reference import Branch
from app.models.vehicle import Vehicle
from app.services.activity_log_service import log_activity
from app.services.permissions import Actor, CREATE, DELETE, EDIT, require
from app.utils.datetime_utils import to_naive_utc
from app.utils.logger import get_logger

logger = get_logger(__name__)

ON_HIRE_LABEL = "On Hire"


# ── Store ────────────────────────────────────────────────────────────────────

def list_vehicles(db: Session, branch_id: Optional[int] = None, category_id: Optional[int] = None,
                  include_deleted: bool = False):
    q = db.query(Vehicle)
    if not include_deleted:
        q = q.filter(Vehicle.deleted_at.is_(None))
    if branch_id is not None:
        q = q.filter(Vehicle.branch_id == branch_id)
    if category_id is not None:
        q = q.filter(Vehicle.category_id == category_id)
    return q.order_by(Vehicle.reg_number).all()


def get_vehicle(db: Session, vehicle_id: int, include_deleted: bool = False, lock: bool = False) -> Vehicle:
    """
    Fetch one vehicle or raise NotFoundError. lock=True takes a row lock
    (SELECT ... FOR UPDATE) and reloads the row over any copy already in the session.
    """
    q = db.query(Vehicle).filter(Vehicle.id == vehicle_id)
    if not include_deleted:
        q = q.filter(Vehicle.deleted_at.is_(None))
    if lock:
        q = q.with_for_update().populate_existing()
    vehicle = q.first()
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


def update_vehicle(db: Session, vehicle_id: int, values: dict) -> Vehicle:
    """
    Apply a partial update and return the post-update record. Does not commit.
    A matched-then-vanished row means the session no longer sees it.
    """
    vehicle = get_vehicle(db, vehicle_id)
    values = {**values, "updated_at": datetime.utcnow()}
    updated = (
        db.query(Vehicle)
        .filter(Vehicle.id == vehicle_id, Vehicle.deleted_at.is_(None))
        .update(values, synchronize_session="fetch")
    )
    if not updated:
        logger.error(f"[VEHICLE] update of vehicle={vehicle_id} matched no row")
        raise IntegrityError(
            "Update was not applied. You may need to refresh your session: log out and back in."
        )
    return vehicle


def _branch_name(db: Session, branch_id: Optional[int]) -> str:
    if branch_id is None:
        return "Unknown"
    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    return branch.branch_name if branch else str(branch_id)


def _location_label(db: Session, vehicle: Vehicle) -> str:
    if vehicle.on_hire:
        return ON_HIRE_LABEL
    return _branch_name(db, vehicle.branch_id)


# ── Operations ───────────────────────────────────────────────────────────────

async def create_vehicle(db: Session, data: dict, actor: Actor) -> Vehicle:
    require(actor, CREATE, data.get("branch_id"))

    if not data.get("reg_number"):
        raise ValidationError("Registration number is required")
    if not data.get("mot_not_applicable") and not data.get("mot_expiry"):
        raise ValidationError("MOT expiry is required unless MOT is not applicable")
    existing = db.query(Vehicle).filter(Vehicle.reg_number == data["reg_number"]).first()
    if existing:
        raise ConflictError(f"Registration {data['reg_number']} already exists")

    now = datetime.utcnow()
    vehicle = Vehicle(**data, created_at=now, updated_at=now)
    db.add(vehicle)
    db.flush()
    await log_activity(db, vehicle.id, actor, "created", new_value=vehicle.reg_number,
                       notes="Vehicle added to fleet")
    db.commit()
    logger.info(f"[VEHICLE] {vehicle.reg_number} registered by {actor.user_id}")
    return vehicle


async def set_manual_health(db: Session, vehicle_id: int, health: Health, notes: str, actor: Actor) -> Vehicle:
    """Freeze health at an operator-chosen value; automatic rollup stops until cleared."""
    vehicle = get_vehicle(db, vehicle_id)
    require(actor, EDIT, vehicle.branch_id)

    health = Health(health)
    await log_activity(db, vehicle.id, actor, "health", old_value=vehicle.health,
                       new_value=health.value, notes=notes)
    vehicle = update_vehicle(db, vehicle.id, {
        "health": health.value,
        "health_override": True,
        "health_set_by": actor.user_id,
        "health_set_at": datetime.utcnow(),
    })
    db.commit()
    logger.info(f"[HEALTH] {vehicle.reg_number} manually set to {health.value} by {actor.user_id}")
    return vehicle


async def clear_health_override(db: Session, vehicle_id: int, actor: Actor) -> Vehicle:
    """Re-enable automatic rollup. Stored health is recomputed on the next issue mutation."""
    vehicle = get_vehicle(db, vehicle_id)
    require(actor, EDIT, vehicle.branch_id)
    if not vehicle.health_override:
        return vehicle

    await log_activity(db, vehicle.id, actor, "health_override", old_value=True, new_value=False,
                       notes="Automatic health rollup re-enabled")
    vehicle = update_vehicle(db, vehicle.id, {
        "health_override": False,
        "health_set_by": None,
        "health_set_at": None,
    })
    db.commit()
    return vehicle


async def move_vehicle(db: Session, vehicle_id: int, branch_id: int, actor: Actor) -> Vehicle:
    """Base the vehicle at a branch. Ends any on-hire state."""
    vehicle = get_vehicle(db, vehicle_id)
    require(actor, EDIT, branch_id)
    if not db.query(Branch).filter(Branch.id == branch_id).first():
        raise NotFoundError(f"Branch {branch_id} not found")

    old_location = _location_label(db, vehicle)
    new_location = _branch_name(db, branch_id)
    await log_activity(db, vehicle.id, actor, "branch_id", old_value=old_location, new_value=new_location,
                       notes=f"Vehicle moved from {old_location} to {new_location}")

    values = {"branch_id": branch_id, "on_hire": False, "on_hire_location": None}
    if vehicle.status == VehicleStatus.ON_HIRE.value:
        values["status"] = VehicleStatus.AVAILABLE.value
    vehicle = update_vehicle(db, vehicle.id, values)
    db.commit()
    logger.info(f"[VEHICLE] {vehicle.reg_number} moved {old_location} → {new_location}")
    return vehicle


async def mark_on_hire(db: Session, vehicle_id: int, location: str, actor: Actor) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    require(actor, EDIT, vehicle.branch_id)
    if not location:
        raise ValidationError("On-hire location is required")

    old_location = _location_label(db, vehicle)
    await log_activity(db, vehicle.id, actor, "branch_id", old_value=old_location, new_value=ON_HIRE_LABEL,
                       notes=f"Vehicle went on hire at {location}")
    vehicle = update_vehicle(db, vehicle.id, {
        "branch_id": None,
        "on_hire": True,
        "on_hire_location": location,
        "status": VehicleStatus.ON_HIRE.value,
    })
    db.commit()
    return vehicle


def list_mileage(db: Session, vehicle_id: int):
    return (
        db.query(MileageLog)
        .filter(MileageLog.vehicle_id == vehicle_id)
        .order_by(MileageLog.reading_datetime.desc(), MileageLog.id.desc())
        .all()
    )


async def record_mileage(db: Session, vehicle_id: int, reading: int, reading_at: datetime,
                         actor: Actor) -> MileageLog:
    """Append an odometer reading and move the vehicle's current mileage forward."""
    reading_at = to_naive_utc(reading_at)
    vehicle = get_vehicle(db, vehicle_id)
    require(actor, EDIT, vehicle.branch_id)
    if reading < (vehicle.current_mileage or 0):
        raise ValidationError(
            f"Reading {reading} is below current mileage {vehicle.current_mileage}"
        )

    log = MileageLog(vehicle_id=vehicle.id, reading_datetime=reading_at, mileage_reading=reading,
                     recorded_by=actor.user_id, created_at=datetime.utcnow())
    previous = list_mileage(db, vehicle.id)
    if previous:
        latest = previous[0]
        if reading_at < latest.reading_datetime:
            raise ValidationError(
                f"Reading dated {reading_at} is earlier than the latest reading ({latest.reading_datetime})"
            )
        log.km_since_last = reading - latest.mileage_reading
        log.days_since_last = math.ceil((reading_at - latest.reading_datetime).total_seconds() / 86400)
        log.km_per_day = log.km_since_last / log.days_since_last if log.days_since_last > 0 else 0.0
    db.add(log)

    await log_activity(db, vehicle.id, actor, "current_mileage",
                       old_value=vehicle.current_mileage, new_value=reading)
    update_vehicle(db, vehicle.id, {"current_mileage": reading, "last_mileage_update": reading_at})
    db.commit()

    if vehicle.next_service_mileage and reading >= vehicle.next_service_mileage:
        logger.warning(f"[VEHICLE] {vehicle.reg_number} at {reading} km is due for service "
                       f"(threshold {vehicle.next_service_mileage})")
    return log


async def soft_delete_vehicle(db: Session, vehicle_id: int, actor: Actor) -> Vehicle:
    """Tombstone a vehicle that has no live or upcoming bookings."""
    vehicle = get_vehicle(db, vehicle_id)
    require(actor, DELETE, vehicle.branch_id)

    now = datetime.utcnow()
    blocking = (
        db.query(Booking)
        .filter(
            Booking.vehicle_id == vehicle.id,
            Booking.status.in_(settings.VEHICLE_DELETE_BLOCKING_STATUSES),
        )
        .first()
    )
    if blocking:
        raise ConflictError("Cannot delete vehicle with active or pending bookings", [blocking.id])

    upcoming = (
        db.query(Booking)
        .filter(
            Booking.vehicle_id == vehicle.id,
            Booking.status != BookingStatus.CANCELLED.value,
            Booking.start_datetime >= now,
        )
        .first()
    )
    if upcoming:
        raise ConflictError("Cannot delete vehicle with future bookings", [upcoming.id])

    await log_activity(db, vehicle.id, actor, "deleted_at", new_value=now.isoformat(),
                       notes="Vehicle soft deleted")
    update_vehicle(db, vehicle.id, {"deleted_at": now})
    db.commit()
    logger.info(f"[VEHICLE] {vehicle.reg_number} soft deleted by {actor.user_id}")
    return vehicle
