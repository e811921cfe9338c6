# app/services/permissions.py
"""
Role-scoped authorization.
Admins act on any branch; everyone else is confined to their own branch and
to the actions their role grants there.
"""

from dataclasses import dataclass
from typing import Optional

from app.exceptions import PermissionDeniedError
from app.models.enums import UserRole

CREATE, EDIT, DELETE = "create", "edit", "delete"

# role → (actions allowed on any branch, actions allowed in own branch)
ROLE_PERMISSIONS = {
    UserRole.ADMIN.value:    ({CREATE, EDIT, DELETE}, {CREATE, EDIT, DELETE}),
    UserRole.MANAGER.value:  (set(), {CREATE, EDIT, DELETE}),
    UserRole.MECHANIC.value: (set(), {CREATE, EDIT}),
    UserRole.DRIVER.value:   (set(), {EDIT}),
}


@dataclass(frozen=True)
class Actor:
    """Who is performing a mutation. Supplied by the external auth layer."""

    user_id: str
    role: str
    name: Optional[str] = None
    branch_id: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.name or self.user_id


SYSTEM_ACTOR = Actor(user_id="system", role=UserRole.ADMIN.value, name="Automatic health rollup")


def can(actor: Actor, action: str, branch_id: Optional[int]) -> bool:
    global_actions, branch_actions = ROLE_PERMISSIONS.get(actor.role, (set(), set()))
    if action in global_actions:
        return True
    return action in branch_actions and branch_id is not None and branch_id == actor.branch_id


def require(actor: Actor, action: str, branch_id: Optional[int]):
    """Raise PermissionDeniedError unless the actor may perform action in branch_id."""
    if not can(actor, action, branch_id):
        raise PermissionDeniedError(
            f"Role '{actor.role}' cannot {action} records in branch {branch_id}"
        )
