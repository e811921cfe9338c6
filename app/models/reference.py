# app/models/reference.py
"""
Reference data: branches (physical depots) and vehicle categories.
Vehicles point at both; availability can be narrowed by either.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from app.database import Base


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    branch_name = Column(String(100), unique=True, nullable=False)
    location = Column(String(200))
    contact_info = Column(Text)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Branch {self.id} {self.branch_name}>"


class VehicleCategory(Base):
    __tablename__ = "vehicle_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<VehicleCategory {self.id} {self.category_name}>"
