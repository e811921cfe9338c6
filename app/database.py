# app/database.py
"""
Engine, session factory and schema bootstrap for the fleet database.
PostgreSQL in production: the booking overlap exclusion constraint lives
there. SQLite (in-memory for tests) gets the same tables without it.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from app.config import settings

if settings.is_sqlite:
    # One shared connection so an in-memory database survives across sessions
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
else:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=10,
        max_overflow=20,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Request-scoped session. Services commit; this only closes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create missing tables (and btree_gist + the overlap constraint on PostgreSQL). Idempotent."""
    from app.models.reference import Branch, VehicleCategory   # noqa
    from app.models.vehicle import Vehicle                     # noqa
    from app.models.booking import Booking                     # noqa
    from app.models.issue import Issue, IssueDeletion          # noqa
    from app.models.activity_log import VehicleActivityLog     # noqa
    from app.models.mileage_log import MileageLog              # noqa

    Base.metadata.create_all(bind=engine)


def drop_tables():
    """Drops every table. Used by tests and scripts/setup/init_db.py --reset."""
    from app import models  # noqa

    Base.metadata.drop_all(bind=engine)
