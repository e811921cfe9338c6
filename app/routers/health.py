# app/routers/health.py
"""
Service health check.
Reports database reachability, which overlap guard is in force, and a
small fleet summary so a dashboard can spot a grounded-heavy fleet.
"""

from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import func, text
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.models.booking import Booking
from app.models.enums import BookingStatus, Health
from app.models.vehicle import Vehicle
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "database": "unknown",
        # Exclusion constraint exists only on PostgreSQL; elsewhere the row lock is all there is
        "overlap_guard": "row_lock" if settings.is_sqlite else "exclusion_constraint",
        "fleet": {},
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except sa_exc.SQLAlchemyError as e:
        logger.error(f"[HEALTH] database check failed: {e}")
        result["database"] = f"error: {e}"
        result["status"] = "degraded"
        return result

    live = db.query(Vehicle).filter(Vehicle.deleted_at.is_(None))
    result["fleet"] = {
        "vehicles": live.count(),
        "grounded": live.filter(Vehicle.health == Health.GROUNDED.value).count(),
        "active_bookings": db.query(func.count(Booking.id))
        .filter(Booking.status == BookingStatus.ACTIVE.value)
        .scalar(),
    }
    return result
