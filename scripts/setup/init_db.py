# scripts/setup/init_db.py
"""
Initialize database: creates all tables (and the booking exclusion
constraint on PostgreSQL).
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--reset] [--seed]
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import date, datetime
from app.database import create_tables, drop_tables, engine, SessionLocal
from app.config import settings
from app.models.reference import Branch, VehicleCategory
from app.models.vehicle import Vehicle
from sqlalchemy import inspect, text


def seed():
    """Two branches, two categories, three vehicles, enough to try the booking flow."""
    db = SessionLocal()
    try:
        now = datetime.utcnow()
        town = Branch(branch_name="Town", location="Main depot", created_at=now)
        airport = Branch(branch_name="Airport", location="Terminal car park", created_at=now)
        saloon = VehicleCategory(category_name="Saloon", created_at=now)
        suv = VehicleCategory(category_name="SUV", created_at=now)
        db.add_all([town, airport, saloon, suv])
        db.flush()
        db.add_all([
            Vehicle(reg_number="KDA 001A", category_id=saloon.id, branch_id=town.id,
                    insurance_expiry=date(2027, 1, 31), mot_expiry=date(2027, 3, 31), created_at=now),
            Vehicle(reg_number="KDA 002B", category_id=saloon.id, branch_id=airport.id,
                    insurance_expiry=date(2027, 1, 31), mot_expiry=date(2027, 3, 31), created_at=now),
            Vehicle(reg_number="KDB 100C", category_id=suv.id, branch_id=town.id,
                    insurance_expiry=date(2027, 1, 31), mot_not_applicable=True, created_at=now),
        ])
        db.commit()
        print("Seeded 2 branches, 2 categories, 3 vehicles")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create fleet database tables")
    parser.add_argument("--reset", action="store_true", help="Drop every table first")
    parser.add_argument("--seed", action="store_true", help="Insert demo branches and vehicles")
    args = parser.parse_args()

    print("Fleet DB Initialization")
    print("=" * 40)
    print(f"Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("Database connection OK")
    except Exception as e:
        print(f"Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    if args.reset:
        print("\nDropping tables...")
        drop_tables()

    print("\nCreating tables...")
    create_tables()

    tables = sorted(inspect(engine).get_table_names())
    print(f"\nTables in database ({len(tables)} total):")
    for t in tables:
        print(f"   - {t}")

    if args.seed:
        seed()

    print("\nDatabase ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
