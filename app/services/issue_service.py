# app/services/issue_service.py
"""
Issue (snag) store and mutations.
Each create / update / soft delete re-runs the vehicle health rollup in the
same transaction as the issue change.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, ValidationError
from app.models.enums import IssuePriority, IssueStatus
from app.models.issue import Issue, IssueDeletion
from app.services.health_service import refresh_vehicle_health
from app.services.permissions import Actor, CREATE, DELETE, EDIT, require
from app.services.vehicle_service import get_vehicle
from app.utils.logger import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = {"priority", "status", "description"}


def list_issues(db: Session, vehicle_id: Optional[int] = None, status: Optional[str] = None,
                include_deleted: bool = False):
    q = db.query(Issue)
    if vehicle_id is not None:
        q = q.filter(Issue.vehicle_id == vehicle_id)
    if status:
        q = q.filter(Issue.status == status)
    if not include_deleted:
        q = q.filter(Issue.deleted_at.is_(None))
    return q.order_by(Issue.opened_at.desc(), Issue.id.desc()).all()


def list_open_by_vehicle(db: Session, vehicle_id: int):
    return list_issues(db, vehicle_id=vehicle_id, status=IssueStatus.OPEN.value)


def get_issue(db: Session, issue_id: int) -> Issue:
    issue = db.query(Issue).filter(Issue.id == issue_id, Issue.deleted_at.is_(None)).first()
    if not issue:
        raise NotFoundError(f"Issue {issue_id} not found")
    return issue


def _check_priority(priority):
    if priority is not None:
        try:
            IssuePriority(priority)
        except ValueError:
            raise ValidationError(f"Unknown issue priority: {priority!r}") from None


async def _after_mutation(db: Session, vehicle_id: int):
    """Health rollup for one vehicle. Row lock before the issue read so concurrent rollups queue."""
    get_vehicle(db, vehicle_id, include_deleted=True, lock=True)
    await refresh_vehicle_health(db, vehicle_id, list_open_by_vehicle(db, vehicle_id))


async def create_issue(db: Session, vehicle_id: int, description: str, actor: Actor,
                       priority: Optional[str] = None, opened_at: Optional[datetime] = None) -> Issue:
    vehicle = get_vehicle(db, vehicle_id)
    require(actor, CREATE, vehicle.branch_id)
    if not description or not description.strip():
        raise ValidationError("Issue description is required")
    _check_priority(priority)

    issue = Issue(
        vehicle_id=vehicle.id,
        branch_id=vehicle.branch_id,
        priority=priority,
        status=IssueStatus.OPEN.value,
        description=description.strip(),
        opened_at=opened_at or datetime.utcnow(),
        reported_by=actor.user_id,
    )
    db.add(issue)
    db.flush()
    await _after_mutation(db, vehicle.id)
    db.commit()
    logger.info(f"[ISSUE] #{issue.id} opened on {vehicle.reg_number} priority={priority}")
    return issue


async def update_issue(db: Session, issue_id: int, changes: dict, actor: Actor) -> Issue:
    """Edit priority / status / description. Closing stamps closed_at; reopening clears it."""
    issue = get_issue(db, issue_id)
    require(actor, EDIT, issue.branch_id)

    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
    if "priority" in changes:
        _check_priority(changes["priority"])
    if "description" in changes and not (changes["description"] or "").strip():
        raise ValidationError("Issue description is required")

    if "status" in changes:
        try:
            new_status = IssueStatus(changes["status"])
        except ValueError:
            raise ValidationError(f"Unknown issue status: {changes['status']!r}") from None
        if new_status.value != issue.status:
            issue.closed_at = datetime.utcnow() if new_status == IssueStatus.CLOSED else None
        issue.status = new_status.value
    if "priority" in changes:
        issue.priority = changes["priority"]
    if "description" in changes:
        issue.description = changes["description"].strip()

    db.flush()
    await _after_mutation(db, issue.vehicle_id)
    db.commit()
    logger.info(f"[ISSUE] #{issue.id} updated: {changes}")
    return issue


async def close_issue(db: Session, issue_id: int, actor: Actor) -> Issue:
    return await update_issue(db, issue_id, {"status": IssueStatus.CLOSED.value}, actor)


async def soft_delete_issue(db: Session, issue_id: int, reason: str, actor: Actor) -> IssueDeletion:
    """Tombstone an issue, keeping an audit row with the reason and the actor."""
    issue = get_issue(db, issue_id)
    require(actor, DELETE, issue.branch_id)
    if not reason or not reason.strip():
        raise ValidationError("A reason is required to delete an issue")

    now = datetime.utcnow()
    audit = IssueDeletion(
        issue_id=issue.id,
        vehicle_id=issue.vehicle_id,
        priority=issue.priority,
        status=issue.status,
        description=issue.description,
        opened_at=issue.opened_at,
        closed_at=issue.closed_at,
        deleted_by=actor.user_id,
        deletion_reason=reason.strip(),
        deleted_at=now,
    )
    db.add(audit)
    issue.deleted_at = now
    issue.deleted_by = actor.user_id
    db.flush()

    await _after_mutation(db, issue.vehicle_id)
    db.commit()
    logger.warning(f"[ISSUE] #{issue.id} deleted by {actor.user_id}: {reason}")
    return audit
