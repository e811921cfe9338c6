# app/routers/bookings.py
"""Bookings: availability search, then create or edit with conflict re-validation."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_actor
from app.schemas.booking import BookingCreate, BookingUpdate, BookingCancel, BookingOut
from app.schemas.vehicle import VehicleAvailabilityOut
from app.services import booking_service
from app.services.availability import insurance_expires_during
from app.services.permissions import Actor
from app.utils.datetime_utils import to_naive_utc

router = APIRouter()


def _flagged(vehicles, start: datetime, end: datetime) -> list[VehicleAvailabilityOut]:
    start, end = to_naive_utc(start), to_naive_utc(end)
    return [
        VehicleAvailabilityOut.model_validate(v).model_copy(
            update={"insurance_expires_during": insurance_expires_during(v, start, end)}
        )
        for v in vehicles
    ]


@router.get("/availability", response_model=list[VehicleAvailabilityOut], summary="Vehicles free for a window")
def get_availability(start: datetime, end: datetime, category_id: Optional[int] = None,
                     branch_id: Optional[int] = None, db: Session = Depends(get_db)):
    """
    Eligible vehicles with no Draft / Active / unpaid booking overlapping [start, end).
    Vehicles whose insurance lapses inside the window are flagged, not hidden.
    """
    vehicles = booking_service.resolve_availability(db, start, end, category_id=category_id, branch_id=branch_id)
    return _flagged(vehicles, start, end)


@router.get("/bookings", response_model=list[BookingOut])
def list_bookings(branch_id: Optional[int] = None, vehicle_id: Optional[int] = None,
                  status: Optional[str] = None, db: Session = Depends(get_db)):
    return booking_service.list_bookings(db, branch_id=branch_id, vehicle_id=vehicle_id, status=status)


@router.post("/bookings", response_model=BookingOut, status_code=201, summary="Create a booking")
async def create_booking(body: BookingCreate, db: Session = Depends(get_db),
                         actor: Actor = Depends(get_actor)):
    """Returns 409 when another booking for the vehicle was committed over the same window."""
    return await booking_service.create_booking(db, body.model_dump(), actor)


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    return booking_service.get_booking(db, booking_id)


@router.patch("/bookings/{booking_id}", response_model=BookingOut, summary="Edit a booking")
async def update_booking(booking_id: int, body: BookingUpdate, db: Session = Depends(get_db),
                         actor: Actor = Depends(get_actor)):
    return await booking_service.update_booking(db, booking_id, body.model_dump(exclude_unset=True), actor)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut, summary="Cancel a booking")
async def cancel_booking(booking_id: int, body: Optional[BookingCancel] = None,
                         db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    reason = body.reason if body else None
    return await booking_service.cancel_booking(db, booking_id, actor, reason=reason)


@router.get("/bookings/{booking_id}/candidates", response_model=list[VehicleAvailabilityOut],
            summary="Vehicles the edit form may offer")
def edit_candidates(booking_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None,
                    category_id: Optional[int] = None, db: Session = Depends(get_db)):
    booking = booking_service.get_booking(db, booking_id)
    start = start or booking.start_datetime
    end = end or booking.end_datetime
    vehicles = booking_service.edit_candidates(db, booking_id, start, end, category_id=category_id)
    return _flagged(vehicles, start, end)
