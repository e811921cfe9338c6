# app/models/vehicle.py
"""
Fleet vehicles.
Health is either derived from open issues or frozen by a manual override
(health_override + health_set_by/health_set_at record who froze it and when).
Vehicles are soft-deleted via deleted_at, never removed.
"""

from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, ForeignKey
from app.database import Base
from app.models.enums import Health, VehicleStatus


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reg_number = Column(String(20), unique=True, nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("vehicle_categories.id"), index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), index=True)   # NULL while on hire
    make = Column(String(100))
    model = Column(String(100))

    # Operational status and health are independent grounding signals
    status = Column(String(20), nullable=False, default=VehicleStatus.AVAILABLE.value)
    health = Column(String(20), nullable=False, default=Health.EXCELLENT.value)
    health_override = Column(Boolean, nullable=False, default=False)
    health_set_by = Column(String(100))
    health_set_at = Column(DateTime)

    is_personal = Column(Boolean, nullable=False, default=False)
    on_hire = Column(Boolean, nullable=False, default=False)
    on_hire_location = Column(String(200))

    current_mileage = Column(Integer, nullable=False, default=0)
    last_mileage_update = Column(DateTime)
    next_service_mileage = Column(Integer)

    insurance_expiry = Column(Date)
    mot_expiry = Column(Date)
    mot_not_applicable = Column(Boolean, nullable=False, default=False)

    deleted_at = Column(DateTime, index=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<Vehicle {self.reg_number} status={self.status} health={self.health}>"
