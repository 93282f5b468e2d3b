"""Permission schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.permission import PermissionLevel


class PermissionGrant(BaseModel):
    """Grant a level to a user for the equipment in the path."""
    user_id: int
    permission_level: PermissionLevel = PermissionLevel.NORMAL


class PermissionLevelUpdate(BaseModel):
    """Change the level of an existing grant."""
    permission_level: PermissionLevel


class PermissionResponse(BaseModel):
    """A grant with display names."""
    id: int
    equipment_id: int
    user_id: int
    granted_by: Optional[int] = None
    permission_level: PermissionLevel
    granted_at: Optional[datetime] = None
    username: Optional[str] = None
    equipment_name: Optional[str] = None
    granted_by_name: Optional[str] = None

    class Config:
        from_attributes = True


class PermissionCheck(BaseModel):
    """Current user's access to one piece of equipment."""
    has_permission: bool
    permission_level: Optional[str] = None  # "admin" or a PermissionLevel value
    reason: str  # admin | granted | none
