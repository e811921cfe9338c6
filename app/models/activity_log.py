# app/models/activity_log.py
"""
Append-only field-level change log per vehicle.
Written by health, location, mileage and lifecycle changes.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base


class VehicleActivityLog(Base):
    __tablename__ = "vehicle_activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    user_id = Column(String(100), nullable=False)
    user_name = Column(String(200))
    user_role = Column(String(20))
    field_changed = Column(String(50), nullable=False, index=True)
    old_value = Column(Text)
    new_value = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<VehicleActivityLog {self.id} vehicle={self.vehicle_id} field={self.field_changed}>"
