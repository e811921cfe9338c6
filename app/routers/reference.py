# app/routers/reference.py
"""Branches and vehicle categories."""

from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.exceptions import ConflictError
from app.dependencies import get_actor
from app.models.reference import Branch, VehicleCategory
from app.schemas.reference import BranchCreate, BranchOut, CategoryCreate, CategoryOut
from app.services.permissions import Actor, CREATE, require

router = APIRouter()


@router.get("/branches", response_model=list[BranchOut])
def list_branches(db: Session = Depends(get_db)):
    return db.query(Branch).order_by(Branch.branch_name).all()


@router.post("/branches", response_model=BranchOut, status_code=201)
def create_branch(body: BranchCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    require(actor, CREATE, None)
    if db.query(Branch).filter(Branch.branch_name == body.branch_name).first():
        raise ConflictError(f"Branch {body.branch_name} already exists")
    branch = Branch(**body.model_dump(), created_at=datetime.utcnow())
    db.add(branch)
    db.commit()
    return branch


@router.get("/categories", response_model=list[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return db.query(VehicleCategory).order_by(VehicleCategory.category_name).all()


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(body: CategoryCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    require(actor, CREATE, None)
    if db.query(VehicleCategory).filter(VehicleCategory.category_name == body.category_name).first():
        raise ConflictError(f"Category {body.category_name} already exists")
    category = VehicleCategory(**body.model_dump(), created_at=datetime.utcnow())
    db.add(category)
    db.commit()
    return category
