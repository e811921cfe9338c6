# app/dependencies.py
"""
Request-scoped dependencies shared by routers.
Identity is established upstream (auth proxy / session layer) and forwarded
as X-User-* headers; this service only reads it.
"""

from typing import Optional
from fastapi import Header, HTTPException, status
from app.models.enums import UserRole
from app.services.permissions import Actor


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_branch_id: Optional[int] = Header(None),
) -> Actor:
    """FastAPI dependency: resolves the acting user or rejects the request."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Missing X-User-Id / X-User-Role headers")
    if x_user_role not in {r.value for r in UserRole}:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail=f"Unknown role '{x_user_role}'")
    return Actor(user_id=x_user_id, role=x_user_role, name=x_user_name, branch_id=x_branch_id)
