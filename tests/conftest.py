"""Shared fixtures: in-memory SQLite database, fleet factories, actors."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before app.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("API_KEY", "")
os.environ.setdefault("LOG_TO_FILE", "false")

from datetime import date, datetime

import pytest

from app.database import SessionLocal, create_tables, drop_tables
from app.models.booking import Booking
from app.models.reference import Branch, VehicleCategory
from app.models.vehicle import Vehicle
from app.services.permissions import Actor


@pytest.fixture
def db():
    create_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_tables()


@pytest.fixture
def admin():
    return Actor(user_id="u-admin", role="admin", name="Ada Admin")


@pytest.fixture
def branch(db):
    b = Branch(branch_name="Town", location="Main depot", created_at=datetime.utcnow())
    db.add(b)
    db.commit()
    return b


@pytest.fixture
def category(db):
    c = VehicleCategory(category_name="Saloon", created_at=datetime.utcnow())
    db.add(c)
    db.commit()
    return c


@pytest.fixture
def make_vehicle(db, branch, category):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = dict(
            reg_number=f"KDA {counter['n']:03d}A",
            category_id=category.id,
            branch_id=branch.id,
            insurance_expiry=date(2031, 1, 1),
            mot_expiry=date(2031, 1, 1),
            created_at=datetime.utcnow(),
        )
        fields.update(overrides)
        vehicle = Vehicle(**fields)
        db.add(vehicle)
        db.commit()
        return vehicle

    return _make


@pytest.fixture
def make_booking(db, branch):
    def _make(vehicle, start, end, status="Active", **overrides):
        fields = dict(
            vehicle_id=vehicle.id,
            branch_id=branch.id,
            client_name="Existing Client",
            client_phone="+254700000001",
            start_datetime=start,
            end_datetime=end,
            status=status,
            booking_type="self_drive",
            health_at_booking=vehicle.health,
            created_at=datetime.utcnow(),
        )
        fields.update(overrides)
        booking = Booking(**fields)
        db.add(booking)
        db.commit()
        return booking

    return _make

