# app/schemas/vehicle.py
from pydantic import BaseModel, Field
from datetime import datetime, date
from typing import Optional
from app.models.enums import Health, VehicleStatus


class VehicleCreate(BaseModel):
    reg_number: str
    category_id: Optional[int] = None
    branch_id: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    status: VehicleStatus = VehicleStatus.AVAILABLE.value
    health: Health = Health.EXCELLENT.value
    is_personal: bool = False
    current_mileage: int = Field(0, ge=0)
    next_service_mileage: Optional[int] = None
    insurance_expiry: Optional[date] = None
    mot_expiry: Optional[date] = None
    mot_not_applicable: bool = False

    class Config:
        use_enum_values = True


class VehicleOut(BaseModel):
    id: int
    reg_number: str
    category_id: Optional[int]
    branch_id: Optional[int]
    make: Optional[str]
    model: Optional[str]
    status: str
    health: str
    health_override: bool
    health_set_by: Optional[str]
    health_set_at: Optional[datetime]
    is_personal: bool
    on_hire: bool
    on_hire_location: Optional[str]
    current_mileage: int
    last_mileage_update: Optional[datetime]
    next_service_mileage: Optional[int]
    insurance_expiry: Optional[date]
    mot_expiry: Optional[date]
    mot_not_applicable: bool
    deleted_at: Optional[datetime]

    class Config:
        from_attributes = True


class VehicleAvailabilityOut(VehicleOut):
    """A vehicle offered for a booking window, with warnings for that window."""
    insurance_expires_during: bool = False


class HealthUpdate(BaseModel):
    health: Health
    notes: str = ""

    class Config:
        use_enum_values = True


class LocationUpdate(BaseModel):
    branch_id: int


class OnHireUpdate(BaseModel):
    location: str


class MileageCreate(BaseModel):
    mileage_reading: int = Field(..., ge=0)
    reading_datetime: Optional[datetime] = None


class MileageOut(BaseModel):
    id: int
    vehicle_id: int
    reading_datetime: datetime
    mileage_reading: int
    km_since_last: Optional[int]
    days_since_last: Optional[int]
    km_per_day: Optional[float]
    recorded_by: Optional[str]

    class Config:
        from_attributes = True
