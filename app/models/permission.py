"""Per-equipment permission grants."""
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class PermissionLevel(str, enum.Enum):
    """Access level a user holds on one piece of equipment."""
    NORMAL = "normal"  # Bookings need approval
    AUTONOMOUS = "autonomous"  # Bookings are confirmed immediately
    MANAGER = "manager"  # Can administer other users' grants for the equipment


class EquipmentPermission(Base):
    """
    Grant of a permission level to a user for one piece of equipment.

    At most one grant exists per (equipment, user); granting again replaces
    the level and the granter.
    """
    __tablename__ = "equipment_permissions"

    id = Column(Integer, primary_key=True, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    granted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    permission_level = Column(String(20), default=PermissionLevel.NORMAL.value, nullable=False)
    granted_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("equipment_id", "user_id", name="uq_permission_equipment_user"),
    )

    # Relationships
    equipment = relationship("Equipment", back_populates="permissions")
    user = relationship("User", foreign_keys=[user_id], back_populates="permissions")
    granter = relationship("User", foreign_keys=[granted_by])

    @property
    def level(self) -> PermissionLevel:
        return PermissionLevel(self.permission_level)

    @property
    def username(self):
        return self.user.username if self.user else None

    @property
    def equipment_name(self):
        return self.equipment.name if self.equipment else None

    @property
    def granted_by_name(self):
        return self.granter.username if self.granter else None
