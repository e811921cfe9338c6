# app/schemas/activity_log.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ActivityLogOut(BaseModel):
    id: int
    vehicle_id: int
    user_id: str
    user_name: Optional[str]
    user_role: Optional[str]
    field_changed: str
    old_value: Optional[str]
    new_value: Optional[str]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
