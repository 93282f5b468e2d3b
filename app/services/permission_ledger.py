"""Permission ledger - per-(equipment, user) access grants."""
import logging
from typing import List, Optional

from sqlalchemy import case, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import errors
from app.clock import utcnow
from app.models.equipment import Equipment
from app.models.permission import EquipmentPermission, PermissionLevel
from app.models.user import User, GRANTABLE_ROLES

logger = logging.getLogger(__name__)


def has_permission(db: Session, equipment_id: int, user_id: int) -> Optional[EquipmentPermission]:
    """The user's grant for the equipment, or None."""
    return (
        db.query(EquipmentPermission)
        .filter(
            EquipmentPermission.equipment_id == equipment_id,
            EquipmentPermission.user_id == user_id,
        )
        .first()
    )


def can_manage(db: Session, equipment_id: int, user_id: int) -> bool:
    """True iff the user holds a manager-level grant for the equipment."""
    grant = has_permission(db, equipment_id, user_id)
    return grant is not None and grant.level is PermissionLevel.MANAGER


def grant(
    db: Session,
    equipment_id: int,
    user_id: int,
    granted_by: Optional[int],
    level: PermissionLevel = PermissionLevel.NORMAL,
) -> EquipmentPermission:
    """
    Insert or replace the grant for (equipment, user).

    (equipment_id, user_id) is the uniqueness key: an existing grant has its
    level, granter and grant time overwritten, so there is never more than
    one row per pair.
    """
    level = PermissionLevel(level)
    if not db.query(Equipment.id).filter(Equipment.id == equipment_id).first():
        raise errors.NotFoundError("Equipment not found")
    if not db.query(User.id).filter(User.id == user_id).first():
        raise errors.NotFoundError("User not found")

    permission = has_permission(db, equipment_id, user_id)
    if permission is None:
        permission = EquipmentPermission(
            equipment_id=equipment_id,
            user_id=user_id,
            granted_by=granted_by,
            permission_level=level.value,
        )
        db.add(permission)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent grant inserted the pair first; overwrite it instead
            db.rollback()
            permission = has_permission(db, equipment_id, user_id)
            if permission is None:
                raise
            _overwrite(db, permission, granted_by, level)
    else:
        _overwrite(db, permission, granted_by, level)

    db.refresh(permission)
    logger.info(
        "Granted %s on equipment %s to user %s (by %s)",
        level.value, equipment_id, user_id, granted_by,
    )
    return permission


def _overwrite(db: Session, permission: EquipmentPermission, granted_by: Optional[int], level: PermissionLevel):
    permission.permission_level = level.value
    permission.granted_by = granted_by
    permission.granted_at = utcnow()
    db.commit()


def update_level(
    db: Session,
    equipment_id: int,
    user_id: int,
    level: PermissionLevel,
    granted_by: Optional[int],
) -> EquipmentPermission:
    """Change the level of an existing grant, recording who changed it and when."""
    permission = has_permission(db, equipment_id, user_id)
    if not permission:
        raise errors.NotFoundError("Permission not found")
    _overwrite(db, permission, granted_by, PermissionLevel(level))
    db.refresh(permission)
    logger.info("Permission of user %s on equipment %s set to %s", user_id, equipment_id, permission.permission_level)
    return permission


def revoke(db: Session, equipment_id: int, user_id: int) -> bool:
    """Delete the grant if present. Returns whether a grant was removed."""
    permission = has_permission(db, equipment_id, user_id)
    if not permission:
        return False
    db.delete(permission)
    db.commit()
    logger.info("Revoked permission of user %s on equipment %s", user_id, equipment_id)
    return True


def list_by_equipment(db: Session, equipment_id: int) -> List[EquipmentPermission]:
    """Grants for one piece of equipment: managers first, then autonomous, then normal."""
    level_order = case(
        (EquipmentPermission.permission_level == PermissionLevel.MANAGER.value, 1),
        (EquipmentPermission.permission_level == PermissionLevel.AUTONOMOUS.value, 2),
        else_=3,
    )
    return (
        db.query(EquipmentPermission)
        .filter(EquipmentPermission.equipment_id == equipment_id)
        .order_by(level_order, EquipmentPermission.granted_at.desc(), EquipmentPermission.id.desc())
        .all()
    )


def list_by_user(db: Session, user_id: int) -> List[EquipmentPermission]:
    """All grants held by a user, newest first."""
    return (
        db.query(EquipmentPermission)
        .filter(EquipmentPermission.user_id == user_id)
        .order_by(EquipmentPermission.granted_at.desc(), EquipmentPermission.id.desc())
        .all()
    )


def list_candidates(db: Session, equipment_id: int) -> List[User]:
    """Users eligible for a new grant on the equipment."""
    granted = select(EquipmentPermission.user_id).where(EquipmentPermission.equipment_id == equipment_id)
    return (
        db.query(User)
        .filter(User.id.not_in(granted), User.role.in_(GRANTABLE_ROLES))
        .order_by(User.department, User.username)
        .all()
    )


def get_managed_equipment(db: Session, user_id: int) -> List[Equipment]:
    """Equipment the user holds a manager-level grant for."""
    return (
        db.query(Equipment)
        .join(EquipmentPermission, EquipmentPermission.equipment_id == Equipment.id)
        .filter(
            EquipmentPermission.user_id == user_id,
            EquipmentPermission.permission_level == PermissionLevel.MANAGER.value,
        )
        .order_by(Equipment.name)
        .all()
    )
