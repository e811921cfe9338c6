# app/schemas/issue.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from app.models.enums import IssuePriority, IssueStatus


class IssueCreate(BaseModel):
    vehicle_id: int
    description: str
    priority: Optional[IssuePriority] = None
    opened_at: Optional[datetime] = None

    class Config:
        use_enum_values = True


class IssueUpdate(BaseModel):
    priority: Optional[IssuePriority] = None
    status: Optional[IssueStatus] = None
    description: Optional[str] = None

    class Config:
        use_enum_values = True


class IssueDelete(BaseModel):
    reason: str


class IssueOut(BaseModel):
    id: int
    vehicle_id: int
    branch_id: Optional[int]
    priority: Optional[str]
    status: str
    description: str
    opened_at: datetime
    closed_at: Optional[datetime]
    reported_by: Optional[str]

    class Config:
        from_attributes = True


class IssueDeletionOut(BaseModel):
    issue_id: int
    vehicle_id: int
    deleted_by: str
    deletion_reason: str
    deleted_at: datetime

    class Config:
        from_attributes = True
