# app/services/health_service.py
"""
Vehicle health rollup.

compute_health() derives Excellent / OK / Grounded from open issues.
refresh_vehicle_health() applies it after every issue mutation, unless the
vehicle's health is in the ManualHealth state, which stays put until an
operator clears the override.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Union

from sqlalchemy.orm import Session

from app.config import settings
from app.models.enums import Health, IssuePriority, IssueStatus
from app.services.activity_log_service import log_activity
from app.services.permissions import SYSTEM_ACTOR
from app.services.vehicle_service import get_vehicle, update_vehicle
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AutoHealth:
    value: Health


@dataclass(frozen=True)
class ManualHealth:
    value: Health
    set_by: Optional[str] = None
    set_at: Optional[datetime] = None


HealthState = Union[AutoHealth, ManualHealth]


def health_state(vehicle) -> HealthState:
    """Read a vehicle's stored health as a tagged state."""
    value = Health(vehicle.health)
    if vehicle.health_override:
        return ManualHealth(value, vehicle.health_set_by, vehicle.health_set_at)
    return AutoHealth(value)


def compute_health(issues: Iterable, important_threshold: Optional[int] = None) -> Health:
    """
    Dangerous open issue → Grounded; else enough Important ones → OK; else Excellent.
    Closed and soft-deleted issues are dropped here even if the caller already did.
    """
    if important_threshold is None:
        important_threshold = settings.HEALTH_IMPORTANT_THRESHOLD

    dangerous = important = 0
    for issue in issues:
        if issue.status != IssueStatus.OPEN.value or getattr(issue, "deleted_at", None) is not None:
            continue
        if issue.priority == IssuePriority.DANGEROUS.value:
            dangerous += 1
        elif issue.priority == IssuePriority.IMPORTANT.value:
            important += 1

    if dangerous > 0:
        return Health.GROUNDED
    if important >= important_threshold:
        return Health.OK
    return Health.EXCELLENT


async def refresh_vehicle_health(db: Session, vehicle_id: int, open_issues: Iterable) -> Health:
    """
    Recompute and store health after an issue mutation. Does not commit.
    Returns the health the vehicle holds afterwards.
    """
    vehicle = get_vehicle(db, vehicle_id, include_deleted=True)
    state = health_state(vehicle)

    if vehicle.deleted_at is not None:
        return state.value

    if isinstance(state, ManualHealth):
        logger.info(f"[HEALTH] vehicle={vehicle.reg_number} manual override by {state.set_by}, rollup skipped")
        return state.value

    computed = compute_health(open_issues)
    if computed != state.value:
        await log_activity(db, vehicle.id, SYSTEM_ACTOR, "health",
                           old_value=state.value.value, new_value=computed.value,
                           notes="Recomputed from open issues")
        update_vehicle(db, vehicle.id, {"health": computed.value})
        logger.info(f"[HEALTH] vehicle={vehicle.reg_number} {state.value.value} → {computed.value}")
    return computed
