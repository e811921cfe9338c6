# app/schemas/reference.py
from pydantic import BaseModel
from typing import Optional


class BranchCreate(BaseModel):
    branch_name: str
    location: Optional[str] = None
    contact_info: Optional[str] = None


class BranchOut(BaseModel):
    id: int
    branch_name: str
    location: Optional[str]
    contact_info: Optional[str]

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    category_name: str
    description: Optional[str] = None


class CategoryOut(BaseModel):
    id: int
    category_name: str
    description: Optional[str]

    class Config:
        from_attributes = True
