"""Equipment log model."""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


DEFAULT_LOG_TYPE = "usage_remark"


class EquipmentLog(Base):
    """
    Append-only remark about a piece of equipment.

    Usually written after a reservation is used; may reference that
    reservation.
    """
    __tablename__ = "equipment_logs"

    id = Column(Integer, primary_key=True, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True, index=True)
    log_type = Column(String(50), default=DEFAULT_LOG_TYPE, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    equipment = relationship("Equipment", back_populates="logs")
    user = relationship("User", back_populates="logs")
    reservation = relationship("Reservation", back_populates="logs")

    @property
    def username(self):
        return self.user.username if self.user else None

    @property
    def department(self):
        return self.user.department if self.user else None

    @property
    def equipment_name(self):
        return self.equipment.name if self.equipment else None
