# app/services/activity_log_service.py
"""
Append-only vehicle activity log.
Used by vehicle_service, health_service and issue_service.
Entries join the caller's unit of work so they commit together with the
change they describe.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.activity_log import VehicleActivityLog
from app.services.permissions import Actor
from app.utils.logger import get_audit_logger

audit = get_audit_logger()


async def log_activity(db: Session, vehicle_id: int, actor: Actor, field_changed: str,
                       old_value=None, new_value=None, notes: Optional[str] = None):
    """Stage one activity entry on the session. The caller commits."""
    entry = VehicleActivityLog(
        vehicle_id=vehicle_id,
        user_id=actor.user_id,
        user_name=actor.display_name,
        user_role=actor.role,
        field_changed=field_changed,
        old_value=None if old_value is None else str(old_value),
        new_value=None if new_value is None else str(new_value),
        notes=notes,
        created_at=datetime.utcnow(),
    )
    db.add(entry)
    audit.info(f"[ACTIVITY] vehicle={vehicle_id} {field_changed}: {old_value} → {new_value} by {actor.user_id}")
    return entry


def list_activity(db: Session, vehicle_id: int, field_changed: Optional[str] = None,
                  limit: Optional[int] = None):
    q = db.query(VehicleActivityLog).filter(VehicleActivityLog.vehicle_id == vehicle_id)
    if field_changed:
        q = q.filter(VehicleActivityLog.field_changed == field_changed)
    q = q.order_by(VehicleActivityLog.created_at.desc(), VehicleActivityLog.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()
