# app/models/issue.py
"""
Issues (snags) reported against vehicles, plus the audit trail written when
an issue is soft-deleted. Only Open, non-deleted issues feed the health rollup.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base
from app.models.enums import IssueStatus


class Issue(Base):
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"))
    priority = Column(String(20))            # Dangerous | Important | Nice to Fix | Aesthetic | NULL
    status = Column(String(10), nullable=False, default=IssueStatus.OPEN.value, index=True)
    description = Column(Text, nullable=False)
    opened_at = Column(DateTime, nullable=False)
    closed_at = Column(DateTime)
    reported_by = Column(String(100))
    deleted_at = Column(DateTime, index=True)
    deleted_by = Column(String(100))

    def __repr__(self):
        return f"<Issue {self.id} vehicle={self.vehicle_id} {self.priority} {self.status}>"


class IssueDeletion(Base):
    __tablename__ = "issue_deletions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    issue_id = Column(Integer, ForeignKey("issues.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, nullable=False, index=True)
    priority = Column(String(20))
    status = Column(String(10))
    description = Column(Text)
    opened_at = Column(DateTime)
    closed_at = Column(DateTime)
    deleted_by = Column(String(100), nullable=False)
    deletion_reason = Column(Text, nullable=False)
    deleted_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<IssueDeletion issue={self.issue_id} by={self.deleted_by}>"
