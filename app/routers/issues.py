# app/routers/issues.py
"""Issues (snags). Every change here re-runs the vehicle health rollup."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_actor
from app.schemas.issue import IssueCreate, IssueUpdate, IssueDelete, IssueOut, IssueDeletionOut
from app.services import issue_service
from app.services.permissions import Actor
from app.services.vehicle_service import get_vehicle

router = APIRouter()


@router.get("/vehicles/{vehicle_id}/issues", response_model=list[IssueOut])
def list_vehicle_issues(vehicle_id: int, status: Optional[str] = None, db: Session = Depends(get_db)):
    get_vehicle(db, vehicle_id)
    return issue_service.list_issues(db, vehicle_id=vehicle_id, status=status)


@router.post("/issues", response_model=IssueOut, status_code=201, summary="Report an issue")
async def create_issue(body: IssueCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return await issue_service.create_issue(db, body.vehicle_id, body.description, actor,
                                            priority=body.priority, opened_at=body.opened_at)


@router.patch("/issues/{issue_id}", response_model=IssueOut, summary="Edit or close an issue")
async def update_issue(issue_id: int, body: IssueUpdate, db: Session = Depends(get_db),
                       actor: Actor = Depends(get_actor)):
    return await issue_service.update_issue(db, issue_id, body.model_dump(exclude_unset=True), actor)


@router.delete("/issues/{issue_id}", response_model=IssueDeletionOut, summary="Soft delete an issue")
async def delete_issue(issue_id: int, body: IssueDelete, db: Session = Depends(get_db),
                       actor: Actor = Depends(get_actor)):
    return await issue_service.soft_delete_issue(db, issue_id, body.reason, actor)
