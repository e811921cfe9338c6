# app/schemas/booking.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from app.models.enums import BookingStatus, BookingType


class BookingCreate(BaseModel):
    vehicle_id: int
    branch_id: int
    client_name: str
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    start_datetime: datetime
    end_datetime: datetime
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    status: BookingStatus = BookingStatus.DRAFT.value
    booking_type: BookingType = BookingType.SELF_DRIVE.value
    chauffeur_id: Optional[str] = None
    chauffeur_name: Optional[str] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class BookingUpdate(BaseModel):
    """Every field optional; only the ones sent are applied."""
    vehicle_id: Optional[int] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    status: Optional[BookingStatus] = None
    booking_type: Optional[BookingType] = None
    chauffeur_id: Optional[str] = None
    chauffeur_name: Optional[str] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingOut(BaseModel):
    id: int
    booking_reference: Optional[str]
    vehicle_id: int
    branch_id: int
    client_name: str
    client_phone: Optional[str]
    client_email: Optional[str]
    start_datetime: datetime
    end_datetime: datetime
    start_location: Optional[str]
    end_location: Optional[str]
    status: str
    booking_type: str
    health_at_booking: Optional[str]
    chauffeur_id: Optional[str]
    chauffeur_name: Optional[str]
    invoice_number: Optional[str]
    notes: Optional[str]
    created_by: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
