# app/models/mileage_log.py
"""Odometer readings per vehicle, with deltas against the previous reading."""

from sqlalchemy import Column, Integer, DateTime, Float, String, ForeignKey
from app.database import Base


class MileageLog(Base):
    __tablename__ = "mileage_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    reading_datetime = Column(DateTime, nullable=False, index=True)
    mileage_reading = Column(Integer, nullable=False)
    km_since_last = Column(Integer)
    days_since_last = Column(Integer)
    km_per_day = Column(Float)
    recorded_by = Column(String(100))
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<MileageLog vehicle={self.vehicle_id} reading={self.mileage_reading}>"
