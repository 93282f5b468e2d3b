"""Equipment permission routes.

Admins manage every grant. A user holding a manager-level grant on a piece of
equipment manages the normal and autonomous grants of that equipment.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import errors
from app.auth import ensure_can_grant, ensure_can_manage, get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.equipment import EquipmentResponse
from app.schemas.permission import PermissionCheck, PermissionGrant, PermissionLevelUpdate, PermissionResponse
from app.schemas.user import UserSummary
from app.services import equipment_registry, permission_ledger

router = APIRouter(prefix="/permissions", tags=["Permissions"])


def _managed_equipment(db: Session, equipment_id: int, current_user: User):
    equipment = equipment_registry.get_equipment(db, equipment_id)
    ensure_can_manage(db, equipment_id, current_user)
    return equipment


@router.get("/equipment/{equipment_id}", response_model=List[PermissionResponse])
async def list_equipment_permissions(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    _managed_equipment(db, equipment_id, current_user)
    return permission_ledger.list_by_equipment(db, equipment_id)


@router.get("/equipment/{equipment_id}/candidates", response_model=List[UserSummary])
async def list_permission_candidates(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Users who could be granted access to the equipment."""
    _managed_equipment(db, equipment_id, current_user)
    return permission_ledger.list_candidates(db, equipment_id)


@router.post("/equipment/{equipment_id}/grant", response_model=PermissionResponse)
async def grant_permission(
    equipment_id: int,
    grant_data: PermissionGrant,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Grant (or re-grant) a level to a user."""
    _managed_equipment(db, equipment_id, current_user)
    existing = permission_ledger.has_permission(db, equipment_id, grant_data.user_id)
    ensure_can_grant(current_user, grant_data.permission_level, existing)
    return permission_ledger.grant(
        db, equipment_id, grant_data.user_id, current_user.id, grant_data.permission_level
    )


@router.put("/equipment/{equipment_id}/user/{user_id}", response_model=PermissionResponse)
async def update_permission_level(
    equipment_id: int,
    user_id: int,
    level_data: PermissionLevelUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    _managed_equipment(db, equipment_id, current_user)
    existing = permission_ledger.has_permission(db, equipment_id, user_id)
    if not existing:
        raise errors.NotFoundError("Permission not found")
    ensure_can_grant(current_user, level_data.permission_level, existing)
    return permission_ledger.update_level(
        db, equipment_id, user_id, level_data.permission_level, current_user.id
    )


@router.delete("/equipment/{equipment_id}/user/{user_id}")
async def revoke_permission(
    equipment_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    _managed_equipment(db, equipment_id, current_user)
    ensure_can_grant(current_user, existing=permission_ledger.has_permission(db, equipment_id, user_id))
    revoked = permission_ledger.revoke(db, equipment_id, user_id)
    return {"message": "Permission revoked" if revoked else "No permission to revoke", "revoked": revoked}


@router.get("/check/{equipment_id}", response_model=PermissionCheck)
async def check_permission(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """The current user's access level on one piece of equipment."""
    if current_user.is_admin:
        return PermissionCheck(has_permission=True, permission_level="admin", reason="admin")
    grant = permission_ledger.has_permission(db, equipment_id, current_user.id)
    if grant:
        return PermissionCheck(has_permission=True, permission_level=grant.level.value, reason="granted")
    return PermissionCheck(has_permission=False, permission_level=None, reason="none")


@router.get("/my", response_model=List[PermissionResponse])
async def my_permissions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return permission_ledger.list_by_user(db, current_user.id)


@router.get("/my/managed", response_model=List[EquipmentResponse])
async def my_managed_equipment(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Equipment the current user manages; admins manage everything."""
    if current_user.is_admin:
        return equipment_registry.list_equipment(db, limit=1000)
    return permission_ledger.get_managed_equipment(db, current_user.id)


@router.get("/user/{user_id}", response_model=List[PermissionResponse])
async def user_permissions(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """A user's grants. Managers only see grants on equipment they manage."""
    grants = permission_ledger.list_by_user(db, user_id)
    if current_user.is_admin:
        return grants
    managed = {e.id for e in permission_ledger.get_managed_equipment(db, current_user.id)}
    if not managed:
        raise errors.AuthorizationError("Equipment manager permission required")
    return [g for g in grants if g.equipment_id in managed]
