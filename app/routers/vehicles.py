# app/routers/vehicles.py
"""Fleet inventory: intake, manual health, location and mileage changes, soft delete, activity history."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_actor
from app.schemas.activity_log import ActivityLogOut
from app.schemas.vehicle import (
    VehicleCreate, VehicleOut, HealthUpdate, LocationUpdate, OnHireUpdate, MileageCreate, MileageOut,
)
from app.services import vehicle_service
from app.services.activity_log_service import list_activity
from app.services.permissions import Actor

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleOut], summary="List fleet vehicles")
def list_vehicles(branch_id: Optional[int] = None, category_id: Optional[int] = None,
                  db: Session = Depends(get_db)):
    return vehicle_service.list_vehicles(db, branch_id=branch_id, category_id=category_id)


@router.post("/vehicles", response_model=VehicleOut, status_code=201, summary="Register a vehicle")
async def create_vehicle(body: VehicleCreate, db: Session = Depends(get_db),
                         actor: Actor = Depends(get_actor)):
    return await vehicle_service.create_vehicle(db, body.model_dump(), actor)


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    return vehicle_service.get_vehicle(db, vehicle_id)


@router.put("/vehicles/{vehicle_id}/health", response_model=VehicleOut, summary="Manually set health")
async def set_health(vehicle_id: int, body: HealthUpdate, db: Session = Depends(get_db),
                     actor: Actor = Depends(get_actor)):
    """Freezes health at the given value. Issue changes stop affecting it until the override is cleared."""
    return await vehicle_service.set_manual_health(db, vehicle_id, body.health, body.notes, actor)


@router.delete("/vehicles/{vehicle_id}/health/override", response_model=VehicleOut,
               summary="Clear manual health override")
async def clear_health_override(vehicle_id: int, db: Session = Depends(get_db),
                                actor: Actor = Depends(get_actor)):
    return await vehicle_service.clear_health_override(db, vehicle_id, actor)


@router.put("/vehicles/{vehicle_id}/location", response_model=VehicleOut, summary="Move to a branch")
async def move_vehicle(vehicle_id: int, body: LocationUpdate, db: Session = Depends(get_db),
                       actor: Actor = Depends(get_actor)):
    return await vehicle_service.move_vehicle(db, vehicle_id, body.branch_id, actor)


@router.put("/vehicles/{vehicle_id}/on-hire", response_model=VehicleOut, summary="Mark as on hire")
async def mark_on_hire(vehicle_id: int, body: OnHireUpdate, db: Session = Depends(get_db),
                       actor: Actor = Depends(get_actor)):
    return await vehicle_service.mark_on_hire(db, vehicle_id, body.location, actor)


@router.get("/vehicles/{vehicle_id}/mileage", response_model=list[MileageOut])
def list_mileage(vehicle_id: int, db: Session = Depends(get_db)):
    vehicle_service.get_vehicle(db, vehicle_id)
    return vehicle_service.list_mileage(db, vehicle_id)


@router.post("/vehicles/{vehicle_id}/mileage", response_model=MileageOut, status_code=201,
             summary="Record an odometer reading")
async def record_mileage(vehicle_id: int, body: MileageCreate, db: Session = Depends(get_db),
                         actor: Actor = Depends(get_actor)):
    reading_at = body.reading_datetime or datetime.utcnow()
    return await vehicle_service.record_mileage(db, vehicle_id, body.mileage_reading, reading_at, actor)


@router.delete("/vehicles/{vehicle_id}", summary="Soft delete a vehicle")
async def delete_vehicle(vehicle_id: int, db: Session = Depends(get_db),
                         actor: Actor = Depends(get_actor)):
    vehicle = await vehicle_service.soft_delete_vehicle(db, vehicle_id, actor)
    return {"status": "deleted", "reg_number": vehicle.reg_number}


@router.get("/vehicles/{vehicle_id}/activity", response_model=list[ActivityLogOut],
            summary="Field-level change history")
def get_activity(vehicle_id: int, field: Optional[str] = None, limit: int = 50,
                 db: Session = Depends(get_db)):
    vehicle_service.get_vehicle(db, vehicle_id, include_deleted=True)
    return list_activity(db, vehicle_id, field_changed=field, limit=limit)
