"""Reservation model."""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle state."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Reservation(Base):
    """A booked [start_time, end_time) interval on one piece of equipment."""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    purpose = Column(Text, nullable=False, default="")
    status = Column(String(20), default=ReservationStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="reservation_time_valid"),
        Index("ix_reservations_equipment_window", "equipment_id", "start_time", "end_time"),
    )

    # Relationships
    equipment = relationship("Equipment", back_populates="reservations")
    user = relationship("User", back_populates="reservations")
    logs = relationship("EquipmentLog", back_populates="reservation", passive_deletes=True)

    @property
    def username(self):
        return self.user.username if self.user else None

    @property
    def email(self):
        return self.user.email if self.user else None

    @property
    def equipment_name(self):
        return self.equipment.name if self.equipment else None

    @property
    def equipment_location(self):
        return self.equipment.location if self.equipment else None
